"""Helpers for ``scheme://path`` addresses and the file names inside them."""

from __future__ import annotations

import re
import secrets
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from scheme_store.errors import InvalidAddressError

SCHEME_SEPARATOR = "://"

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")


def is_valid_scheme(scheme: str) -> bool:
    return bool(_SCHEME_RE.match(scheme))


def parse_address(address: str) -> tuple[str, str]:
    """Split *address* into ``(scheme, path)``.

    The scheme is lower-cased; the path is returned untouched and may be
    empty (``public://`` addresses the backend root).
    """
    scheme, sep, path = address.partition(SCHEME_SEPARATOR)
    if not sep or not is_valid_scheme(scheme):
        raise InvalidAddressError(address)
    return scheme.lower(), path


def format_address(scheme: str, path: str) -> str:
    return f"{scheme}{SCHEME_SEPARATOR}{path}"


def is_directory_path(path: str) -> bool:
    """True when *path* names a container rather than an object."""
    return path == "" or path.endswith("/")


def normalize_path(path: str) -> str:
    """Collapse ``.``, ``..`` and empty segments of *path*.

    ``./a//b/`` becomes ``a/b``. A ``..`` that would climb above the root
    is kept so the backend can refuse it.
    """
    parts: list[str] = []
    for part in path.split("/"):
        if part in ("", "."):
            continue
        if part == ".." and parts and parts[-1] != "..":
            parts.pop()
        else:
            parts.append(part)
    return "/".join(parts)


def basename(address_or_path: str) -> str:
    """Strip everything up to the last ``/`` (or ``\\``)."""
    if SCHEME_SEPARATOR in address_or_path:
        address_or_path = address_or_path.split(SCHEME_SEPARATOR, 1)[1]
    return re.sub(r"^.*[/\\]", "", address_or_path)


def temporary_name(prefix: str = "file") -> str:
    """Generate a fresh object name for writes that gave no file name."""
    return f"{prefix}{secrets.token_hex(4)}"


def rename_candidates(path: str) -> Iterator[str]:
    """Yield *path*, then ``stem-1.ext``, ``stem-2.ext``, ... forever.

    ``dir/a.txt`` yields ``dir/a.txt``, ``dir/a-1.txt``, ``dir/a-2.txt``, ...
    """
    yield path
    pure = PurePosixPath(path)
    parent = "" if str(pure.parent) == "." else f"{pure.parent}/"
    stem, suffix = pure.stem, pure.suffix
    counter = 1
    while True:
        yield f"{parent}{stem}-{counter}{suffix}"
        counter += 1


@dataclass
class FilenameSanitizer:
    """Neutralise a file name before it is written to a local scheme.

    Attributes:
        unsafe_pattern: Regex matching runs of characters to replace.
        replacement: String substituted for every unsafe run.
        munge_extensions: Append ``_`` to every intermediate extension so
            ``evil.php.txt`` cannot be served as a script.
        allowed_extensions: Intermediate extensions left untouched.
        fallback: Name used when nothing survives sanitisation.
    """

    unsafe_pattern: str = r"[^A-Za-z0-9._\-]+"
    replacement: str = "_"
    munge_extensions: bool = True
    allowed_extensions: list[str] = field(default_factory=list)
    fallback: str = "file"

    def __post_init__(self) -> None:
        self._unsafe = re.compile(self.unsafe_pattern)
        self._allowed = {ext.lower().lstrip(".") for ext in self.allowed_extensions}

    def __call__(self, name: str) -> str:
        return self.sanitize(name)

    def sanitize(self, name: str) -> str:
        cleaned = self._unsafe.sub(self.replacement, basename(name))
        # hidden files
        cleaned = re.sub(r"^\.+", self.replacement, cleaned)
        if self.munge_extensions:
            cleaned = self._munge(cleaned)
        if not cleaned.strip(self.replacement + "."):
            return self.fallback
        return cleaned

    def _munge(self, name: str) -> str:
        parts = name.split(".")
        if len(parts) <= 2:
            return name
        head, *middle, last = parts
        munged = [
            part if part.lower() in self._allowed else f"{part}{self.replacement}"
            for part in middle
        ]
        return ".".join([head, *munged, last])
