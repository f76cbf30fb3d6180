"""Main facade for the scheme_store library."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from types import TracebackType
from typing import TYPE_CHECKING, Any

from scheme_store.address import (
    FilenameSanitizer,
    basename,
    format_address,
    is_directory_path,
    parse_address,
    temporary_name,
)
from scheme_store.errors import NotFoundError, SchemeStoreError
from scheme_store.facade.state import StoreState
from scheme_store.facade.types import DeleteOutcome, WriteResult
from scheme_store.storage.base import ConflictPolicy, DirectoryOptions

if TYPE_CHECKING:
    from scheme_store.index.base import ManagedRecordIndex
    from scheme_store.models import ManagedRecord
    from scheme_store.registry import BackendRegistry
    from scheme_store.storage.base import StorageBackend

logger = logging.getLogger(__name__)

# Directories are always prepared the same way through the façade.
_DIRECTORY_OPTIONS = DirectoryOptions(create_parents=True, set_permissions=True)


def _as_bytes(data: bytes | str) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else bytes(data)


class ObjectStore:
    """Single entry point for reading and writing ``scheme://path`` objects.

    Writes come in two flavours. *Managed* writes never overwrite (the
    object is renamed on conflict) and leave a :class:`ManagedRecord` in
    the index; *unmanaged* writes replace whatever was there and leave no
    trace besides the bytes. :meth:`delete_object` finds out which kind an
    address is by asking the index.

    Usage::

        from scheme_store import BackendRegistry, InMemoryIndex, ObjectStore
        from scheme_store.storage import MemoryStorage

        registry = BackendRegistry({"mem": MemoryStorage()})
        registry.freeze()
        store = ObjectStore(registry, InMemoryIndex(), default_scheme="mem")

        result = store.write_managed("mem://a.txt", b"hello")
        store.delete_object(result.address)
    """

    def __init__(
        self,
        registry: BackendRegistry,
        index: ManagedRecordIndex,
        *,
        default_scheme: str = "public",
        mirror_scheme: str | None = None,
        sanitizer: FilenameSanitizer | None = None,
        state: StoreState | None = None,
    ) -> None:
        self._registry = registry
        self._index = index
        self._default_scheme = default_scheme.lower()
        self._mirror_scheme = mirror_scheme.lower() if mirror_scheme else None
        self._sanitizer = sanitizer or FilenameSanitizer()
        self._state = state or StoreState()

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> ObjectStore:
        """Construct an ObjectStore instance from a configuration dict."""
        from scheme_store.config import parse_config

        return parse_config(config)

    @property
    def registry(self) -> BackendRegistry:
        return self._registry

    @property
    def index(self) -> ManagedRecordIndex:
        return self._index

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def default_scheme(self) -> str:
        return self._default_scheme

    def close(self) -> None:
        """Release the index and any backend holding connections."""
        self._index.close()
        for _, backend in self._registry.backends():
            close = getattr(backend, "close", None)
            if callable(close):
                close()

    def __enter__(self) -> ObjectStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # ── Resolution ───────────────────────────────────────────────────

    def _locate(self, address: str) -> tuple[str, StorageBackend, str]:
        """Return ``(canonical address, backend, path)`` for *address*.

        The canonical form has a lower-case scheme and the path as the
        backend normalises it, which is how managed records are keyed.
        """
        backend, path = self._registry.resolve(address)
        scheme, _ = parse_address(address)
        path = backend.normalize(path)
        return format_address(scheme, path), backend, path

    def _write_target(self, address_hint: str | None) -> tuple[str, StorageBackend, str]:
        """Like :meth:`_locate`, filling in the default scheme and a file name."""
        hint = address_hint or format_address(self._default_scheme, "")
        backend, path = self._registry.resolve(hint)
        scheme, _ = parse_address(hint)
        if is_directory_path(path.lstrip("/")):
            path = f"{path}{temporary_name()}"
        return scheme, backend, backend.normalize(path)

    # ── Writes ───────────────────────────────────────────────────────

    def write_managed(self, address_hint: str | None, data: bytes | str) -> WriteResult:
        """Write without overwriting and track the result in the index.

        Args:
            address_hint: Where to write; empty means the default scheme
                with a generated name.
            data: Payload; ``str`` is encoded as UTF-8.

        Returns:
            The final (possibly renamed) address and the new record id.
        """
        scheme, backend, path = self._write_target(address_hint)
        written = backend.write(path, _as_bytes(data), ConflictPolicy.RENAME)
        address = format_address(scheme, written)

        try:
            record = self._index.create(address)
        except Exception:
            logger.warning("Could not record managed object %s; removing it", address)
            try:
                backend.delete(written)
            except SchemeStoreError as cleanup_exc:
                logger.error("Orphaned object %s left behind: %s", address, cleanup_exc)
            raise

        self._state.remember_file(address)
        logger.info("Wrote managed object %s (record %s)", address, record.id)
        return WriteResult(address=address, record_id=record.id)

    def write_unmanaged(self, address_hint: str | None, data: bytes | str) -> str:
        """Write raw bytes, replacing any existing object. Returns the address."""
        scheme, backend, path = self._write_target(address_hint)
        written = backend.write(path, _as_bytes(data), ConflictPolicy.REPLACE)
        address = format_address(scheme, written)
        self._state.remember_file(address)
        logger.info("Wrote unmanaged object %s", address)
        return address

    def write_stream(self, address_hint: str | None, chunks: Iterable[bytes]) -> str:
        """Unmanaged write fed chunk by chunk; the object appears only when complete."""
        scheme, backend, path = self._write_target(address_hint)
        written = backend.write_stream(path, chunks, ConflictPolicy.REPLACE)
        address = format_address(scheme, written)
        self._state.remember_file(address)
        logger.info("Streamed unmanaged object %s", address)
        return address

    # ── Reads ────────────────────────────────────────────────────────

    def read(self, address: str) -> bytes:
        _, backend, path = self._locate(address)
        return backend.read(path)

    def read_and_mirror(
        self, source_address: str, destination_scheme: str | None = None
    ) -> str:
        """Copy an object into a local scheme under a sanitised file name.

        The copy is unmanaged and renamed rather than overwriting an
        existing object. Returns the address of the copy.
        """
        _, source, path = self._locate(source_address)
        data = source.read(path)

        scheme = (destination_scheme or self._mirror_scheme or self._default_scheme).lower()
        destination = self._registry.get(scheme)
        name = self._sanitizer(basename(path))
        written = destination.write(name, data, ConflictPolicy.RENAME)

        address = format_address(scheme, written)
        self._state.remember_file(address)
        logger.info("Mirrored %s to %s", source_address, address)
        return address

    def exists(self, address: str) -> bool:
        try:
            _, backend, path = self._locate(address)
            return backend.exists(path)
        except Exception:
            logger.debug("exists() collapsed to False for %s", address, exc_info=True)
            return False

    def external_url_for(self, address: str) -> str | None:
        try:
            _, backend, path = self._locate(address)
            return backend.external_url(path)
        except Exception:
            logger.debug("No external URL for %s", address, exc_info=True)
            return None

    def list_objects(self, address: str) -> list[str]:
        """Return the addresses of all objects under a directory address."""
        _, backend, path = self._locate(address)
        scheme, _ = parse_address(address)
        return [format_address(scheme, key) for key in backend.list_keys(path)]

    # ── Managed records ──────────────────────────────────────────────

    def managed_record_for(self, address: str) -> ManagedRecord | None:
        canonical, _, _ = self._locate(address)
        return self._index.find_by_address(canonical)

    def delete_object(self, address: str) -> DeleteOutcome:
        """Delete *address*, whichever way it was written.

        A managed address loses its record and its bytes; an unmanaged one
        just its bytes.

        Raises:
            NotFoundError: Neither a record nor an object exists.
        """
        canonical, backend, path = self._locate(address)
        record = self._index.find_by_address(canonical)

        if record is None:
            try:
                backend.delete(path)
            except SchemeStoreError as exc:
                logger.warning("Failed deleting unmanaged object %s: %s", canonical, exc)
                raise
            self._state.remember_file(canonical)
            logger.info("Deleted unmanaged object %s", canonical)
            return DeleteOutcome.DELETED_UNMANAGED

        try:
            self._index.delete(record)
        except SchemeStoreError as exc:
            logger.warning("Failed deleting managed record for %s: %s", canonical, exc)
            raise
        try:
            backend.delete(path)
        except NotFoundError:
            # bytes already gone; the record was the only thing left
            logger.info("Managed object %s had no content left", canonical)

        self._state.remember_file(canonical)
        logger.info("Deleted managed object %s (record %s)", canonical, record.id)
        return DeleteOutcome.DELETED_MANAGED

    # ── Directories ──────────────────────────────────────────────────

    def create_directory(self, address: str) -> None:
        canonical, backend, path = self._locate(address)
        backend.create_directory(path, _DIRECTORY_OPTIONS)
        self._state.remember_directory(canonical)
        logger.info("Directory %s is ready for use", canonical)

    def delete_directory_recursive(self, address: str) -> None:
        """Remove a directory, its contents, and the records of managed objects in it."""
        canonical, backend, path = self._locate(address)
        backend.delete_directory_recursive(path)

        prefix = canonical if canonical.endswith("/") else f"{canonical}/"
        for record in self._index.list_records(prefix):
            try:
                self._index.delete(record)
            except NotFoundError:
                continue

        self._state.remember_directory(canonical)
        logger.info("Recursively deleted directory %s", canonical)

    def directory_exists(self, address: str) -> bool:
        try:
            _, backend, path = self._locate(address)
            return backend.is_directory(path)
        except Exception:
            logger.debug("directory_exists() collapsed to False for %s", address, exc_info=True)
            return False
