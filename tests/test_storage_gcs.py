"""GCSStorage against an in-process fake of the client library surface it uses."""

from __future__ import annotations

import pytest

pytest.importorskip("google.cloud.storage")

from google.api_core import exceptions as gcs_exceptions  # noqa: E402

from scheme_store.errors import BackendUnavailableError, ConflictError, NotFoundError  # noqa: E402
from scheme_store.storage.base import ConflictPolicy  # noqa: E402
from scheme_store.storage.gcs import GCSStorage  # noqa: E402


class FakeBlob:
    def __init__(self, bucket: FakeBucket, name: str) -> None:
        self._bucket = bucket
        self.name = name

    def upload_from_string(self, data: bytes, if_generation_match: int | None = None) -> None:
        if self._bucket.broken:
            raise gcs_exceptions.ServiceUnavailable("down")
        if if_generation_match == 0 and self.name in self._bucket.objects:
            raise gcs_exceptions.PreconditionFailed("exists")
        self._bucket.objects[self.name] = bytes(data)

    def download_as_bytes(self) -> bytes:
        try:
            return self._bucket.objects[self.name]
        except KeyError:
            raise gcs_exceptions.NotFound("missing") from None

    def delete(self) -> None:
        if self._bucket.objects.pop(self.name, None) is None:
            raise gcs_exceptions.NotFound("missing")

    def exists(self) -> bool:
        return self.name in self._bucket.objects


class FakeBucket:
    def __init__(self, name: str) -> None:
        self.name = name
        self.objects: dict[str, bytes] = {}
        self.broken = False

    def blob(self, name: str) -> FakeBlob:
        return FakeBlob(self, name)


class FakeClient:
    def __init__(self) -> None:
        self.buckets: dict[str, FakeBucket] = {}

    def bucket(self, name: str) -> FakeBucket:
        return self.buckets.setdefault(name, FakeBucket(name))

    def list_blobs(self, bucket: FakeBucket, prefix: str = "", max_results: int | None = None):
        names = sorted(n for n in bucket.objects if n.startswith(prefix))
        if max_results is not None:
            names = names[:max_results]
        return [FakeBlob(bucket, n) for n in names]


@pytest.fixture()
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture()
def storage(client: FakeClient) -> GCSStorage:
    s = GCSStorage("media", prefix="site", client=client)
    s.bind("gs")
    return s


def test_write_read_under_prefix(storage: GCSStorage, client: FakeClient):
    storage.write("a/b.txt", b"hello")
    assert client.buckets["media"].objects == {"site/a/b.txt": b"hello"}
    assert storage.read("a/b.txt") == b"hello"
    assert storage.exists("a/b.txt")


def test_rename_uses_generation_precondition(storage: GCSStorage):
    assert storage.write("a.txt", b"1", ConflictPolicy.RENAME) == "a.txt"
    assert storage.write("a.txt", b"2", ConflictPolicy.RENAME) == "a-1.txt"
    assert storage.read("a.txt") == b"1"


def test_fail_policy(storage: GCSStorage):
    storage.write("a.txt", b"1", ConflictPolicy.FAIL)
    with pytest.raises(ConflictError):
        storage.write("a.txt", b"2", ConflictPolicy.FAIL)


def test_missing_object(storage: GCSStorage):
    with pytest.raises(NotFoundError):
        storage.read("ghost.txt")
    with pytest.raises(NotFoundError):
        storage.delete("ghost.txt")


def test_service_errors_become_unavailable(storage: GCSStorage, client: FakeClient):
    client.bucket("media").broken = True
    with pytest.raises(BackendUnavailableError) as exc_info:
        storage.write("a.txt", b"x")
    assert exc_info.value.address == "gs://a.txt"


def test_directories(storage: GCSStorage, client: FakeClient):
    storage.create_directory("d")
    assert "site/d/" in client.buckets["media"].objects
    assert storage.is_directory("d")
    storage.write("d/x.txt", b"x")
    assert storage.list_keys("d") == ["d/x.txt"]

    storage.delete_directory_recursive("d")
    assert not storage.is_directory("d")
    with pytest.raises(NotFoundError):
        storage.delete_directory_recursive("d")


def test_list_keys_does_not_match_sibling_prefix(storage: GCSStorage):
    storage.write("p/one.txt", b"1")
    storage.write("pq.txt", b"2")
    assert storage.list_keys("p") == ["p/one.txt"]


def test_external_url(storage: GCSStorage):
    assert (
        storage.external_url("my file.txt")
        == "https://storage.googleapis.com/media/site/my%20file.txt"
    )


def test_external_url_disabled(client: FakeClient):
    s = GCSStorage("media", client=client, public_base_url=None)
    assert s.external_url("a.txt") is None


def test_delete_directory_tolerates_concurrent_removal():
    class RacingClient(FakeClient):
        def list_blobs(self, bucket, prefix="", max_results=None):
            blobs = super().list_blobs(bucket, prefix, max_results)
            # another writer removes one object after it was listed
            bucket.objects.pop("d/a.txt", None)
            return blobs

    racing = RacingClient()
    s = GCSStorage("media", client=racing)
    s.write("d/a.txt", b"a")
    s.write("d/b.txt", b"b")

    s.delete_directory_recursive("d")
    assert racing.buckets["media"].objects == {}
