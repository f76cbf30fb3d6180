"""Public return types for the scheme_store API."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


@dataclass(frozen=True)
class WriteResult:
    """Result from :meth:`ObjectStore.write_managed`.

    ``address`` may differ from the requested address when the write was
    renamed to avoid a conflict.
    """

    address: str
    record_id: str | None = None


class DeleteOutcome(StrEnum):
    """Which path :meth:`ObjectStore.delete_object` took."""

    DELETED_MANAGED = "deleted_managed"
    DELETED_UNMANAGED = "deleted_unmanaged"
