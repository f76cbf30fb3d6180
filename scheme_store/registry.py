"""Scheme → backend lookup used by the object store façade."""

from __future__ import annotations

import logging

from scheme_store.address import is_valid_scheme, parse_address
from scheme_store.errors import DuplicateSchemeError, InvalidAddressError, UnknownSchemeError
from scheme_store.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class BackendRegistry:
    """Maps URI schemes to storage backends.

    Registration happens once while the process starts; call
    :meth:`freeze` when done. Lookups never lock, so a frozen registry
    can be shared freely between threads.
    """

    def __init__(self, backends: dict[str, StorageBackend] | None = None) -> None:
        self._backends: dict[str, StorageBackend] = {}
        self._frozen = False
        for scheme, backend in (backends or {}).items():
            self.register(scheme, backend)

    def register(self, scheme: str, backend: StorageBackend) -> None:
        if self._frozen:
            raise RuntimeError("BackendRegistry is frozen; register backends at startup")
        if not is_valid_scheme(scheme):
            raise InvalidAddressError(scheme, f"Invalid scheme: {scheme!r}")
        scheme = scheme.lower()
        if scheme in self._backends:
            raise DuplicateSchemeError(scheme)
        backend.bind(scheme)
        self._backends[scheme] = backend
        logger.debug("Registered %s backend for %s://", type(backend).__name__, scheme)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, scheme: str) -> StorageBackend:
        backend = self._backends.get(scheme.lower())
        if backend is None:
            raise UnknownSchemeError(
                f"{scheme}://",
                f"Unknown scheme '{scheme}'. Available: {self.schemes()}",
            )
        return backend

    def resolve(self, address: str) -> tuple[StorageBackend, str]:
        """Return the backend serving *address* and the path inside it."""
        scheme, path = parse_address(address)
        backend = self._backends.get(scheme)
        if backend is None:
            raise UnknownSchemeError(address)
        return backend, path

    def schemes(self) -> list[str]:
        return sorted(self._backends)

    def backends(self) -> list[tuple[str, StorageBackend]]:
        return sorted(self._backends.items())

    def __contains__(self, scheme: object) -> bool:
        return isinstance(scheme, str) and scheme.lower() in self._backends

    def __len__(self) -> int:
        return len(self._backends)
