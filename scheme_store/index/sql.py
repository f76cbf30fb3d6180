from __future__ import annotations

import logging
from datetime import UTC
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from scheme_store.db.base import DatabaseBackend
from scheme_store.db.sqlite import SQLiteBackend, UrlBackend
from scheme_store.errors import BackendUnavailableError, ConflictError, NotFoundError
from scheme_store.index.base import ManagedRecordIndex
from scheme_store.index.models import ManagedRecordRow
from scheme_store.models import ManagedRecord

logger = logging.getLogger(__name__)


def _to_domain(row: ManagedRecordRow) -> ManagedRecord:
    created_at = row.created_at
    # SQLite drops tzinfo on the way back
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    return ManagedRecord(address=row.address, id=row.id, created_at=created_at)


class SqlIndex(ManagedRecordIndex):
    """Index persisted through SQLAlchemy.

    Per-address atomicity comes from the database: a unique constraint
    on ``address`` rejects a second ``create`` and deletion is a
    conditional ``DELETE`` whose row count tells whether it happened.
    """

    def __init__(self, db: DatabaseBackend, *, auto_init: bool = True) -> None:
        self._db = db
        if auto_init:
            self.init()

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> SqlIndex:
        """Build from ``{"url": ...}`` or ``{"path": ...}`` (SQLite, default in-memory)."""
        if "url" in config:
            db: DatabaseBackend = UrlBackend(config["url"], **config.get("engine", {}))
        else:
            db = SQLiteBackend(config.get("path", ":memory:"))
        return cls(db)

    def _unavailable(self, subject: str, exc: SQLAlchemyError) -> BackendUnavailableError:
        logger.error("Managed record index failed for %s: %s", subject, exc)
        return BackendUnavailableError(
            subject, f"Managed record index unavailable for {subject}"
        )

    def init(self) -> None:
        self._db.init_db()

    def reset(self) -> None:
        self._db.reset_db()

    def close(self) -> None:
        self._db.close()

    def create(self, address: str) -> ManagedRecord:
        try:
            with self._db.session_scope() as session:
                row = ManagedRecordRow(address=address)
                session.add(row)
                session.flush()
                record = _to_domain(row)
        except IntegrityError as exc:
            raise ConflictError(
                address, f"A managed record already exists for {address}"
            ) from exc
        except SQLAlchemyError as exc:
            raise self._unavailable(address, exc) from exc
        return record

    def find_by_address(self, address: str) -> ManagedRecord | None:
        try:
            with self._db.session_scope() as session:
                row = session.scalars(
                    select(ManagedRecordRow).where(ManagedRecordRow.address == address)
                ).first()
                return _to_domain(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise self._unavailable(address, exc) from exc

    def get(self, record_id: str) -> ManagedRecord | None:
        try:
            with self._db.session_scope() as session:
                row = session.get(ManagedRecordRow, record_id)
                return _to_domain(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise self._unavailable(record_id, exc) from exc

    def delete(self, record: ManagedRecord) -> None:
        try:
            with self._db.session_scope() as session:
                result = session.execute(
                    delete(ManagedRecordRow).where(ManagedRecordRow.id == record.id)
                )
                if result.rowcount == 0:
                    raise NotFoundError(
                        record.address,
                        f"Managed record {record.id} was already removed",
                    )
        except SQLAlchemyError as exc:
            raise self._unavailable(record.address, exc) from exc

    def list_records(self, prefix: str | None = None) -> list[ManagedRecord]:
        stmt = select(ManagedRecordRow)
        if prefix is not None:
            stmt = stmt.where(ManagedRecordRow.address.startswith(prefix, autoescape=True))
        stmt = stmt.order_by(ManagedRecordRow.created_at, ManagedRecordRow.id)
        try:
            with self._db.session_scope() as session:
                return [_to_domain(row) for row in session.scalars(stmt)]
        except SQLAlchemyError as exc:
            raise self._unavailable(prefix or "", exc) from exc
