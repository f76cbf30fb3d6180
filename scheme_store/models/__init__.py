"""Domain models: plain dataclasses with no infrastructure dependencies.

The SQLAlchemy row backing :class:`ManagedRecord` lives in
``index/models.py`` and is mapped to and from it at the index boundary.
"""

from scheme_store.models.record import ManagedRecord, generate_id

__all__ = [
    "ManagedRecord",
    "generate_id",
]
