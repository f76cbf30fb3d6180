from __future__ import annotations

import threading

from scheme_store.errors import BackendUnavailableError, NotFoundError
from scheme_store.storage.base import ConflictPolicy, DirectoryOptions, StorageBackend


def _parents(path: str) -> list[str]:
    parts = path.split("/")[:-1]
    return ["/".join(parts[: i + 1]) for i in range(len(parts))]


class MemoryStorage(StorageBackend):
    """Process-local storage backed by a dict.

    Suitable for tests and for session-scoped schemes: nothing survives
    the process and no object has an external URL. Directories exist
    implicitly above every object and explicitly once created.
    """

    def __init__(self) -> None:
        self._objects: dict[str, bytes] = {}
        self._directories: set[str] = set()
        self._lock = threading.Lock()

    def _is_dir_locked(self, path: str) -> bool:
        if path == "":
            return True
        if path in self._directories:
            return True
        prefix = path + "/"
        return any(key.startswith(prefix) for key in self._objects)

    def _check_parents_locked(self, path: str) -> None:
        for parent in _parents(path):
            if parent in self._objects:
                raise BackendUnavailableError(
                    self._address(path), f"Not a directory: {self._address(parent)}"
                )

    # ---- interface ----

    def write(
        self, path: str, data: bytes, policy: ConflictPolicy = ConflictPolicy.REPLACE
    ) -> str:
        path = self.normalize(path)

        def create_exclusive(candidate: str) -> bool:
            if candidate in self._objects or self._is_dir_locked(candidate):
                return False
            self._objects[candidate] = bytes(data)
            return True

        def replace(candidate: str) -> None:
            if self._is_dir_locked(candidate):
                raise BackendUnavailableError(
                    self._address(candidate), "Cannot overwrite a directory"
                )
            self._objects[candidate] = bytes(data)

        with self._lock:
            # renamed candidates share the parent, so one check covers them
            self._check_parents_locked(path)
            return self._write_with_policy(path, policy, create_exclusive, replace)

    def read(self, path: str) -> bytes:
        try:
            return self._objects[self.normalize(path)]
        except KeyError:
            raise NotFoundError(self._address(path)) from None

    def delete(self, path: str) -> None:
        with self._lock:
            if self._objects.pop(self.normalize(path), None) is None:
                raise NotFoundError(self._address(path))

    def exists(self, path: str) -> bool:
        return self.normalize(path) in self._objects

    def is_directory(self, path: str) -> bool:
        with self._lock:
            return self._is_dir_locked(self.normalize(path))

    def list_keys(self, prefix: str) -> list[str]:
        prefix = self.normalize(prefix)
        if prefix in self._objects:
            return [prefix]
        start = f"{prefix}/" if prefix else ""
        return sorted(key for key in list(self._objects) if key.startswith(start))

    def external_url(self, path: str) -> str | None:
        return None

    def create_directory(
        self, path: str, options: DirectoryOptions = DirectoryOptions()
    ) -> None:
        path = self.normalize(path)
        with self._lock:
            if path in self._objects:
                raise BackendUnavailableError(
                    self._address(path), f"An object already exists at {self._address(path)}"
                )
            self._check_parents_locked(path)
            missing = [p for p in _parents(path) if not self._is_dir_locked(p)]
            if missing and not options.create_parents:
                raise BackendUnavailableError(
                    self._address(path),
                    f"Parent directory missing for {self._address(path)}",
                )
            self._directories.update(missing)
            if path:
                self._directories.add(path)

    def delete_directory_recursive(self, path: str) -> None:
        path = self.normalize(path)
        with self._lock:
            if not self._is_dir_locked(path):
                raise NotFoundError(self._address(path))
            prefix = f"{path}/" if path else ""
            for key in [k for k in self._objects if k.startswith(prefix)]:
                del self._objects[key]
            self._directories = {
                d for d in self._directories if d != path and not d.startswith(prefix)
            }
