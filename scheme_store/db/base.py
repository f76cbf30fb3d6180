from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Generator
from contextlib import contextmanager
from types import TracebackType

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from scheme_store.db.models import Base


class DatabaseBackend(ABC):
    """Abstract base class for database backends."""

    @abstractmethod
    def get_engine(self) -> Engine: ...

    @abstractmethod
    def get_session(self) -> Session: ...

    def init_db(self) -> None:
        """Create missing tables (idempotent)."""
        Base.metadata.create_all(self.get_engine())

    def reset_db(self) -> None:
        """Drop all tables and recreate them."""
        Base.metadata.drop_all(self.get_engine())
        Base.metadata.create_all(self.get_engine())

    def close(self) -> None:
        """Dispose of the connection pool and release all resources."""
        self.get_engine().dispose()

    def __enter__(self) -> DatabaseBackend:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @contextmanager
    def session_scope(self) -> Generator[Session]:
        """Provide a transactional scope around a series of operations."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
