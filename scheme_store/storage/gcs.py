from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

try:
    from google.api_core import exceptions as gcs_exceptions
    from google.cloud import storage as gcs_storage
except ImportError:
    gcs_storage = None  # type: ignore[assignment]
    gcs_exceptions = None  # type: ignore[assignment]

from scheme_store.errors import BackendUnavailableError, NotFoundError
from scheme_store.storage.base import ConflictPolicy, DirectoryOptions, StorageBackend

logger = logging.getLogger(__name__)

PUBLIC_BASE_URL = "https://storage.googleapis.com"


class GCSStorage(StorageBackend):
    """Google Cloud Storage backend.

    Requires ``google-cloud-storage``.  Install via::

        pip install "scheme-store[gcs]"

    Directories are key prefixes; ``create_directory`` drops a zero-byte
    ``<path>/`` marker so empty directories are observable.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        project: str | None = None,
        *,
        public_base_url: str | None = PUBLIC_BASE_URL,
        client: Any = None,
    ) -> None:
        if gcs_storage is None:
            raise ImportError(
                "google-cloud-storage is required for GCSStorage. "
                "Install with: pip install 'scheme-store[gcs]'"
            )
        self._client = client if client is not None else gcs_storage.Client(project=project)
        self._bucket_name = bucket
        self._bucket = self._client.bucket(bucket)
        self._prefix = prefix.strip("/") + "/" if prefix.strip("/") else ""
        self._public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def _full_key(self, path: str) -> str:
        return f"{self._prefix}{self.normalize(path)}"

    def _dir_key(self, path: str) -> str:
        key = self._full_key(path)
        return key if key == "" or key.endswith("/") else f"{key}/"

    def _unavailable(self, path: str, exc: Exception) -> BackendUnavailableError:
        logger.warning("GCS request failed for %s: %s", self._address(path), exc)
        return BackendUnavailableError(
            self._address(path), f"Storage service error for {self._address(path)}"
        )

    # ---- interface ----

    def write(
        self, path: str, data: bytes, policy: ConflictPolicy = ConflictPolicy.REPLACE
    ) -> str:
        def create_exclusive(candidate: str) -> bool:
            blob = self._bucket.blob(self._full_key(candidate))
            try:
                # generation 0 means "only if no live object exists"
                blob.upload_from_string(data, if_generation_match=0)
            except gcs_exceptions.PreconditionFailed:
                return False
            return True

        def replace(candidate: str) -> None:
            self._bucket.blob(self._full_key(candidate)).upload_from_string(data)

        try:
            return self._write_with_policy(
                self.normalize(path), policy, create_exclusive, replace
            )
        except gcs_exceptions.GoogleAPIError as exc:
            raise self._unavailable(path, exc) from exc

    def read(self, path: str) -> bytes:
        blob = self._bucket.blob(self._full_key(path))
        try:
            return blob.download_as_bytes()
        except gcs_exceptions.NotFound:
            raise NotFoundError(self._address(path)) from None
        except gcs_exceptions.GoogleAPIError as exc:
            raise self._unavailable(path, exc) from exc

    def delete(self, path: str) -> None:
        blob = self._bucket.blob(self._full_key(path))
        try:
            blob.delete()
        except gcs_exceptions.NotFound:
            raise NotFoundError(self._address(path)) from None
        except gcs_exceptions.GoogleAPIError as exc:
            raise self._unavailable(path, exc) from exc

    def exists(self, path: str) -> bool:
        if not self.normalize(path):
            return False
        try:
            return bool(self._bucket.blob(self._full_key(path)).exists())
        except Exception:
            logger.debug("exists() check failed for %s", self._address(path))
            return False

    def is_directory(self, path: str) -> bool:
        try:
            blobs = self._client.list_blobs(
                self._bucket, prefix=self._dir_key(path), max_results=1
            )
            return any(True for _ in blobs)
        except Exception:
            logger.debug("is_directory() check failed for %s", self._address(path))
            return False

    def list_keys(self, prefix: str) -> list[str]:
        full_prefix = self._dir_key(prefix)
        try:
            blobs = self._client.list_blobs(self._bucket, prefix=full_prefix)
            # strip our root prefix so keys are relative
            strip = len(self._prefix)
            return sorted(
                blob.name[strip:] for blob in blobs if not blob.name.endswith("/")
            )
        except gcs_exceptions.GoogleAPIError as exc:
            raise self._unavailable(prefix, exc) from exc

    def external_url(self, path: str) -> str | None:
        if self._public_base_url is None:
            return None
        return (
            f"{self._public_base_url}/{self._bucket_name}/"
            f"{quote(self._full_key(path))}"
        )

    def create_directory(
        self, path: str, options: DirectoryOptions = DirectoryOptions()
    ) -> None:
        # Prefixes need no parents; permissions are bucket-level IAM.
        try:
            self._bucket.blob(self._dir_key(path)).upload_from_string(b"")
        except gcs_exceptions.GoogleAPIError as exc:
            raise self._unavailable(path, exc) from exc

    def delete_directory_recursive(self, path: str) -> None:
        try:
            blobs = list(self._client.list_blobs(self._bucket, prefix=self._dir_key(path)))
            if not blobs:
                raise NotFoundError(self._address(path))
            for blob in blobs:
                try:
                    blob.delete()
                except gcs_exceptions.NotFound:
                    # removed concurrently
                    continue
        except gcs_exceptions.GoogleAPIError as exc:
            raise self._unavailable(path, exc) from exc
