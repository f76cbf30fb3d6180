from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType

from scheme_store.models import ManagedRecord


class ManagedRecordIndex(ABC):
    """Metadata table mapping an address to its managed record.

    Implementations must make ``create`` and ``delete`` atomic per
    address: two concurrent ``create`` calls for one address must not
    both succeed, and a record can be deleted at most once.
    """

    # ── Lifecycle ────────────────────────────────────────────────────

    def init(self) -> None:
        """Create tables / indices (idempotent)."""

    @abstractmethod
    def reset(self) -> None:
        """Drop all records."""
        ...

    def close(self) -> None:
        """Release any held resources (connections, file handles)."""

    def __enter__(self) -> ManagedRecordIndex:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # ── Records ──────────────────────────────────────────────────────

    @abstractmethod
    def create(self, address: str) -> ManagedRecord:
        """Create a record for *address*; ``ConflictError`` if one is active."""
        ...

    @abstractmethod
    def find_by_address(self, address: str) -> ManagedRecord | None:
        """Return the record for *address*, or ``None``."""
        ...

    @abstractmethod
    def get(self, record_id: str) -> ManagedRecord | None:
        """Return a record by ID, or ``None``."""
        ...

    @abstractmethod
    def delete(self, record: ManagedRecord) -> None:
        """Remove *record*; ``NotFoundError`` if it was already removed."""
        ...

    @abstractmethod
    def list_records(self, prefix: str | None = None) -> list[ManagedRecord]:
        """Return records ordered by ``created_at``, optionally by address prefix."""
        ...
