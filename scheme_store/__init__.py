"""scheme_store: read, write and track objects addressed as ``scheme://path``."""

from scheme_store.address import FilenameSanitizer, format_address, parse_address
from scheme_store.config import load_config, parse_config
from scheme_store.errors import (
    BackendUnavailableError,
    ConflictError,
    DuplicateSchemeError,
    InvalidAddressError,
    NotFoundError,
    ReadOnlyError,
    SchemeStoreError,
    UnknownSchemeError,
)
from scheme_store.facade import DeleteOutcome, ObjectStore, StoreState, WriteResult
from scheme_store.index import InMemoryIndex, ManagedRecordIndex, SqlIndex
from scheme_store.models import ManagedRecord
from scheme_store.registry import BackendRegistry
from scheme_store.storage import ConflictPolicy, DirectoryOptions, StorageBackend

__all__ = [
    "BackendRegistry",
    "BackendUnavailableError",
    "ConflictError",
    "ConflictPolicy",
    "DeleteOutcome",
    "DirectoryOptions",
    "DuplicateSchemeError",
    "FilenameSanitizer",
    "InMemoryIndex",
    "InvalidAddressError",
    "ManagedRecord",
    "ManagedRecordIndex",
    "NotFoundError",
    "ObjectStore",
    "ReadOnlyError",
    "SchemeStoreError",
    "SqlIndex",
    "StorageBackend",
    "StoreState",
    "UnknownSchemeError",
    "WriteResult",
    "format_address",
    "load_config",
    "parse_config",
]
