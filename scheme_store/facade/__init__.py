from scheme_store.facade.core import ObjectStore
from scheme_store.facade.state import StoreState
from scheme_store.facade.types import DeleteOutcome, WriteResult

__all__ = [
    "DeleteOutcome",
    "ObjectStore",
    "StoreState",
    "WriteResult",
]
