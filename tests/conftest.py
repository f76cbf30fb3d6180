from __future__ import annotations

from pathlib import Path

import pytest

from scheme_store import BackendRegistry, InMemoryIndex, ObjectStore
from scheme_store.storage.disk import DiskStorage
from scheme_store.storage.memory import MemoryStorage

PUBLIC_BASE_URL = "http://example.test/files"


@pytest.fixture()
def registry(tmp_path: Path) -> BackendRegistry:
    """Frozen registry with two memory schemes and a public/private disk pair."""
    registry = BackendRegistry(
        {
            "mem": MemoryStorage(),
            "session": MemoryStorage(),
            "public": DiskStorage(str(tmp_path / "public"), base_url=PUBLIC_BASE_URL),
            "private": DiskStorage(str(tmp_path / "private")),
        }
    )
    registry.freeze()
    return registry


@pytest.fixture()
def index() -> InMemoryIndex:
    return InMemoryIndex()


@pytest.fixture()
def store(registry: BackendRegistry, index: InMemoryIndex) -> ObjectStore:
    return ObjectStore(registry, index, default_scheme="public")
