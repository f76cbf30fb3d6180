from __future__ import annotations

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from scheme_store.db.models import Base, CreatedAtMixin
from scheme_store.models import generate_id


class ManagedRecordRow(CreatedAtMixin, Base):
    __tablename__ = "managed_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    address: Mapped[str] = mapped_column(String(2048), nullable=False)

    __table_args__ = (
        UniqueConstraint("address", name="uq_managed_records_address"),
        Index("ix_managed_records_created_at", "created_at"),
    )
