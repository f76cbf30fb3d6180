"""SqlIndex against a real database server (``SCHEME_STORE_TEST_DB_URL``)."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from scheme_store import ConflictError, ObjectStore
from scheme_store.facade import DeleteOutcome
from scheme_store.index.sql import SqlIndex


def test_concurrent_create_has_one_winner(index: SqlIndex) -> None:
    def attempt(_: int) -> bool:
        try:
            index.create("public://contended.txt")
        except ConflictError:
            return False
        return True

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(attempt, range(8)))

    assert results.count(True) == 1


def test_managed_round_trip(store: ObjectStore) -> None:
    result = store.write_managed("public://a.txt", b"x")
    again = store.write_managed("public://a.txt", b"y")
    assert again.address == "public://a-1.txt"

    assert store.delete_object(result.address) is DeleteOutcome.DELETED_MANAGED
    assert store.managed_record_for(result.address) is None
    assert store.managed_record_for(again.address) is not None
