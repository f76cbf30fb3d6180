from scheme_store.index.base import ManagedRecordIndex
from scheme_store.index.memory import InMemoryIndex
from scheme_store.index.sql import SqlIndex

__all__ = [
    "InMemoryIndex",
    "ManagedRecordIndex",
    "SqlIndex",
]
