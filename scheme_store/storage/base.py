from __future__ import annotations

import io
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import BinaryIO

from scheme_store.address import format_address, normalize_path, rename_candidates
from scheme_store.errors import ConflictError

MAX_RENAME_ATTEMPTS = 10_000


class ConflictPolicy(StrEnum):
    """What a write does when its target already holds an object."""

    RENAME = "rename"
    REPLACE = "replace"
    FAIL = "fail"


@dataclass(frozen=True)
class DirectoryOptions:
    create_parents: bool = True
    set_permissions: bool = True


class StorageBackend(ABC):
    """Abstract base class for storage backends.

    A backend serves the path part of ``scheme://path`` addresses for one
    scheme. The scheme is bound by the registry at registration time and
    only used to build error messages.
    """

    scheme: str | None = None

    def bind(self, scheme: str) -> None:
        """Attach the scheme this instance serves; one instance, one scheme."""
        if self.scheme is not None and self.scheme != scheme:
            raise ValueError(
                f"{type(self).__name__} is already registered for '{self.scheme}://'; "
                f"use a separate instance for '{scheme}://'"
            )
        self.scheme = scheme

    def normalize(self, path: str) -> str:
        """Return the form of *path* this backend stores objects under.

        Managed records are keyed by it, so two spellings of one object
        must normalise to the same string.
        """
        return normalize_path(path)

    def _address(self, path: str) -> str:
        return format_address(self.scheme, path) if self.scheme else path

    def _write_with_policy(
        self,
        path: str,
        policy: ConflictPolicy,
        create_exclusive: Callable[[str], bool],
        replace: Callable[[str], None],
    ) -> str:
        """Run the conflict policy against two medium-specific primitives.

        *create_exclusive* must atomically create the object only if it is
        absent and report whether it did; *replace* overwrites.
        """
        if policy == ConflictPolicy.REPLACE:
            replace(path)
            return path

        if policy == ConflictPolicy.FAIL:
            if create_exclusive(path):
                return path
            raise ConflictError(self._address(path))

        for attempt, candidate in enumerate(rename_candidates(path)):
            if attempt >= MAX_RENAME_ATTEMPTS:
                break
            if create_exclusive(candidate):
                return candidate
        raise ConflictError(
            self._address(path), f"No free name left for: {self._address(path)}"
        )

    # ---- interface ----

    @abstractmethod
    def write(
        self, path: str, data: bytes, policy: ConflictPolicy = ConflictPolicy.REPLACE
    ) -> str:
        """Write data to *path* under *policy* and return the path used."""
        ...

    def write_stream(
        self,
        path: str,
        chunks: Iterable[bytes],
        policy: ConflictPolicy = ConflictPolicy.REPLACE,
    ) -> str:
        """Write a sequence of chunks; nothing is visible until all arrived."""
        return self.write(path, b"".join(chunks), policy)

    @abstractmethod
    def read(self, path: str) -> bytes:
        """Read data from the given path."""
        ...

    def open_stream(self, path: str) -> BinaryIO:
        """Open a binary stream for the given path (for large files / streaming)."""
        return io.BytesIO(self.read(path))

    @abstractmethod
    def delete(self, path: str) -> None:
        """Delete the object at *path*; missing objects raise NotFoundError."""
        ...

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Check if an object exists at *path*. Never raises."""
        ...

    @abstractmethod
    def is_directory(self, path: str) -> bool:
        """Check if *path* is a directory. Never raises."""
        ...

    @abstractmethod
    def list_keys(self, prefix: str) -> list[str]:
        """List all object paths under the given prefix."""
        ...

    @abstractmethod
    def external_url(self, path: str) -> str | None:
        """Return a publicly dereferenceable URL, or None. Never raises."""
        ...

    @abstractmethod
    def create_directory(
        self, path: str, options: DirectoryOptions = DirectoryOptions()
    ) -> None: ...

    @abstractmethod
    def delete_directory_recursive(self, path: str) -> None: ...
