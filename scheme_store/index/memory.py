from __future__ import annotations

import threading

from scheme_store.errors import ConflictError, NotFoundError
from scheme_store.index.base import ManagedRecordIndex
from scheme_store.models import ManagedRecord


class InMemoryIndex(ManagedRecordIndex):
    """Index backed by plain Python dicts.

    A single lock serialises mutations, which gives the per-address
    atomicity the façade relies on. Nothing is persisted.
    """

    def __init__(self) -> None:
        self._by_address: dict[str, ManagedRecord] = {}
        self._by_id: dict[str, ManagedRecord] = {}
        self._lock = threading.Lock()

    def reset(self) -> None:
        with self._lock:
            self._by_address.clear()
            self._by_id.clear()

    def create(self, address: str) -> ManagedRecord:
        with self._lock:
            if address in self._by_address:
                raise ConflictError(
                    address, f"A managed record already exists for {address}"
                )
            record = ManagedRecord(address=address)
            self._by_address[address] = record
            self._by_id[record.id] = record
            return record

    def find_by_address(self, address: str) -> ManagedRecord | None:
        return self._by_address.get(address)

    def get(self, record_id: str) -> ManagedRecord | None:
        return self._by_id.get(record_id)

    def delete(self, record: ManagedRecord) -> None:
        with self._lock:
            if self._by_id.pop(record.id, None) is None:
                raise NotFoundError(
                    record.address, f"Managed record {record.id} was already removed"
                )
            self._by_address.pop(record.address, None)

    def list_records(self, prefix: str | None = None) -> list[ManagedRecord]:
        records = list(self._by_id.values())
        if prefix is not None:
            records = [r for r in records if r.address.startswith(prefix)]
        return sorted(records, key=lambda r: (r.created_at, r.id))
