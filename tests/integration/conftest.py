from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest

from scheme_store import BackendRegistry, ObjectStore
from scheme_store.db.models import Base
from scheme_store.db.sqlite import UrlBackend
from scheme_store.index.sql import SqlIndex
from scheme_store.storage.disk import DiskStorage


def pytest_collection_modifyitems(items: list, config) -> None:  # noqa: ANN001
    """Auto-mark every test in the integration directory."""
    marker = pytest.mark.integration
    for item in items:
        item.add_marker(marker)


class Settings:
    def __init__(self) -> None:
        self.url = os.getenv("SCHEME_STORE_TEST_DB_URL")


@pytest.fixture(scope="session")
def settings() -> Settings:
    s = Settings()
    if not s.url:
        pytest.skip("SCHEME_STORE_TEST_DB_URL is not set")
    return s


@pytest.fixture()
def db(settings: Settings) -> Generator[UrlBackend]:
    """Create a DB backend with table cleanup before and after each test."""
    backend = UrlBackend(settings.url)
    backend.init_db()

    with backend.session_scope() as session:
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())

    yield backend

    with backend.session_scope() as session:
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())

    backend.close()


@pytest.fixture()
def index(db: UrlBackend) -> SqlIndex:
    return SqlIndex(db)


@pytest.fixture()
def store(tmp_path: Path, index: SqlIndex) -> ObjectStore:
    registry = BackendRegistry({"public": DiskStorage(str(tmp_path / "public"))})
    registry.freeze()
    return ObjectStore(registry, index)
