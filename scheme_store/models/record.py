from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime


def generate_id() -> str:
    """Random v4 UUID string; shared by records and their table rows."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class ManagedRecord:
    """Metadata kept for an address written in managed mode."""

    address: str
    id: str = field(default_factory=generate_id)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
