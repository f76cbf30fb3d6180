from scheme_store.storage.base import ConflictPolicy, DirectoryOptions, StorageBackend
from scheme_store.storage.disk import DiskStorage
from scheme_store.storage.memory import MemoryStorage

__all__ = [
    "ConflictPolicy",
    "DirectoryOptions",
    "DiskStorage",
    "MemoryStorage",
    "StorageBackend",
]
