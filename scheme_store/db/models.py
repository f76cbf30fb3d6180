from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Declarative base for every scheme_store table."""

    pass


class CreatedAtMixin:
    """Adds a timezone-aware ``created_at`` column set on insert.

    Rows are written once and deleted, never updated, so there is no
    ``updated_at``.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
    )
