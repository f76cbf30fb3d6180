from scheme_store.db.base import DatabaseBackend
from scheme_store.db.models import Base, CreatedAtMixin
from scheme_store.db.sqlite import SQLiteBackend, UrlBackend

__all__ = [
    "Base",
    "CreatedAtMixin",
    "DatabaseBackend",
    "SQLiteBackend",
    "UrlBackend",
]
