from __future__ import annotations

import logging

import httpx

from scheme_store.errors import BackendUnavailableError, NotFoundError, ReadOnlyError
from scheme_store.storage.base import ConflictPolicy, DirectoryOptions, StorageBackend

logger = logging.getLogger(__name__)

_MISSING_STATUSES = {404, 410}


class HttpStorage(StorageBackend):
    """Read-only backend for ``http://`` and ``https://`` addresses.

    The path of an address is ``host/rest``; the URL is the address
    itself. An instance serves the one scheme it is registered under, so
    register ``http`` and ``https`` with separate instances. Useful as the
    source of a mirror operation.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        *,
        headers: dict[str, str] | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._client = client or httpx.Client(
            timeout=timeout, headers=headers, follow_redirects=True
        )

    def normalize(self, path: str) -> str:
        # URL paths are significant as written
        return path

    def _url(self, path: str) -> str:
        return f"{self.scheme or 'https'}://{path}"

    def close(self) -> None:
        self._client.close()

    # ---- interface ----

    def write(
        self, path: str, data: bytes, policy: ConflictPolicy = ConflictPolicy.REPLACE
    ) -> str:
        raise ReadOnlyError(self._url(path))

    def read(self, path: str) -> bytes:
        url = self._url(path)
        try:
            resp = self._client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("GET %s failed: %s", url, exc)
            raise BackendUnavailableError(url, f"Request failed for {url}") from exc

        if resp.status_code in _MISSING_STATUSES:
            raise NotFoundError(url)
        if resp.is_error:
            raise BackendUnavailableError(
                url, f"HTTP {resp.status_code} while reading {url}"
            )
        return resp.content

    def delete(self, path: str) -> None:
        raise ReadOnlyError(self._url(path))

    def exists(self, path: str) -> bool:
        try:
            resp = self._client.head(self._url(path))
        except httpx.HTTPError:
            return False
        return resp.is_success

    def is_directory(self, path: str) -> bool:
        return False

    def list_keys(self, prefix: str) -> list[str]:
        return []

    def external_url(self, path: str) -> str | None:
        return self._url(path)

    def create_directory(
        self, path: str, options: DirectoryOptions = DirectoryOptions()
    ) -> None:
        raise ReadOnlyError(self._url(path))

    def delete_directory_recursive(self, path: str) -> None:
        raise ReadOnlyError(self._url(path))
