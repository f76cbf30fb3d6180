"""Exceptions raised by scheme_store operations.

Every error carries the offending address (or scheme) as it was given by
the caller; messages never include a backend's physical location.
"""


class SchemeStoreError(Exception):
    """Base class for all scheme_store errors."""

    def __init__(self, message: str, address: str | None = None):
        self.message = message
        self.address = address
        super().__init__(self.message)


class UnknownSchemeError(SchemeStoreError, LookupError):
    """Raised when no backend is registered for an address's scheme."""

    def __init__(self, address: str, message: str | None = None):
        super().__init__(
            message or f"No backend registered for address: {address}", address
        )


class InvalidAddressError(UnknownSchemeError):
    """Raised when an address has no ``scheme://`` prefix at all."""

    def __init__(self, address: str, message: str | None = None):
        super().__init__(address, message or f"Malformed address: {address!r}")


class DuplicateSchemeError(SchemeStoreError):
    def __init__(self, scheme: str):
        self.scheme = scheme
        super().__init__(f"Scheme already registered: {scheme}", None)


class NotFoundError(SchemeStoreError, LookupError):
    """Raised when an object, directory or managed record does not exist."""

    def __init__(self, address: str, message: str | None = None):
        super().__init__(message or f"Not found: {address}", address)


class ConflictError(SchemeStoreError):
    """Raised when a write target or managed record already exists.

    A conflict is a logic condition, not a transient one; callers should
    not retry it.
    """

    def __init__(self, address: str, message: str | None = None):
        super().__init__(message or f"Already exists: {address}", address)


class BackendUnavailableError(SchemeStoreError):
    """Raised for I/O failures of the underlying medium (disk, network)."""

    def __init__(self, address: str, message: str | None = None):
        super().__init__(message or f"Backend unavailable for: {address}", address)


class ReadOnlyError(SchemeStoreError):
    """Raised when writing to or deleting from a read-only backend."""

    def __init__(self, address: str, message: str | None = None):
        super().__init__(message or f"Backend is read-only: {address}", address)
