from __future__ import annotations

from typing import Any

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from scheme_store.db.base import DatabaseBackend


class UrlBackend(DatabaseBackend):
    """Database reachable through any SQLAlchemy URL."""

    def __init__(self, url: str, **engine_kwargs: Any) -> None:
        self._engine = create_engine(url, echo=False, **engine_kwargs)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    def get_engine(self) -> Engine:
        return self._engine

    def get_session(self) -> Session:
        return self._session_factory()


class SQLiteBackend(UrlBackend):

    def __init__(self, path: str = ":memory:") -> None:
        if path == ":memory:":
            # one shared connection, or every session sees an empty database
            super().__init__(
                "sqlite:///:memory:",
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            super().__init__(f"sqlite:///{path}")
