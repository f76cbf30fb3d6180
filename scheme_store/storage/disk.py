from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import BinaryIO
from urllib.parse import quote

from scheme_store.address import normalize_path
from scheme_store.errors import BackendUnavailableError, NotFoundError
from scheme_store.storage.base import ConflictPolicy, DirectoryOptions, StorageBackend

logger = logging.getLogger(__name__)


class DiskStorage(StorageBackend):
    """Local filesystem storage backend.

    Paths map to files under *base_path*. When *base_url* is given the
    directory is assumed to be served over HTTP at that URL (a "public"
    scheme); otherwise objects have no external URL (a "private" scheme).
    """

    def __init__(
        self,
        base_path: str,
        base_url: str | None = None,
        *,
        directory_mode: int = 0o775,
        file_mode: int = 0o664,
    ) -> None:
        self._base = Path(base_path).resolve()
        self._base.mkdir(parents=True, exist_ok=True)
        self._base_url = base_url.rstrip("/") if base_url else None
        self._directory_mode = directory_mode
        self._file_mode = file_mode

    def normalize(self, path: str) -> str:
        return normalize_path(path.replace("\\", "/"))

    def _resolve(self, path: str) -> Path | None:
        """Map *path* under the root, or None if it would escape it."""
        key = self.normalize(path)
        if "\x00" in key:
            return None
        try:
            resolved = (self._base / key).resolve()
        except (OSError, RuntimeError, ValueError):
            return None
        if resolved != self._base and not resolved.is_relative_to(self._base):
            return None
        return resolved

    def _resolve_for_write(self, path: str) -> Path:
        resolved = self._resolve(path)
        if resolved is None or resolved == self._base:
            raise BackendUnavailableError(
                self._address(path), f"Path not writable: {self._address(path)}"
            )
        return resolved

    def _resolve_existing(self, path: str) -> Path:
        resolved = self._resolve(path)
        if resolved is None or not resolved.is_file():
            raise NotFoundError(self._address(path))
        return resolved

    def _unavailable(self, path: str, exc: OSError) -> BackendUnavailableError:
        # strerror only; str(exc) would carry the physical path
        reason = exc.strerror or type(exc).__name__
        return BackendUnavailableError(
            self._address(path), f"{reason}: {self._address(path)}"
        )

    def _relative(self, target: Path) -> str:
        return target.relative_to(self._base).as_posix()

    def _finish_file(self, target: Path) -> None:
        # staged files are created 0600
        os.chmod(target, self._file_mode)

    # ---- interface ----

    def write(
        self, path: str, data: bytes, policy: ConflictPolicy = ConflictPolicy.REPLACE
    ) -> str:
        return self.write_stream(path, [data], policy)

    def write_stream(
        self,
        path: str,
        chunks: Iterable[bytes],
        policy: ConflictPolicy = ConflictPolicy.REPLACE,
    ) -> str:
        target = self._resolve_for_write(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # Stage the content first so a half-written object is never visible.
            fd, tmp_name = tempfile.mkstemp(prefix=".tmp-", dir=target.parent)
        except OSError as exc:
            raise self._unavailable(path, exc) from exc
        tmp = Path(tmp_name)

        def create_exclusive(candidate: str) -> bool:
            dest = self._resolve_for_write(candidate)
            try:
                # link() refuses to clobber, so claiming the name is atomic
                os.link(tmp, dest)
            except FileExistsError:
                return False
            self._finish_file(dest)
            return True

        def replace(candidate: str) -> None:
            dest = self._resolve_for_write(candidate)
            if dest.is_dir():
                raise BackendUnavailableError(
                    self._address(candidate), "Cannot overwrite a directory"
                )
            os.replace(tmp, dest)
            self._finish_file(dest)

        try:
            with os.fdopen(fd, "wb") as f:
                for chunk in chunks:
                    f.write(chunk)
            written = self._write_with_policy(
                self.normalize(path), policy, create_exclusive, replace
            )
        except OSError as exc:
            raise self._unavailable(path, exc) from exc
        finally:
            tmp.unlink(missing_ok=True)

        logger.debug("Wrote %s", self._address(written))
        return written

    def read(self, path: str) -> bytes:
        target = self._resolve_existing(path)
        try:
            return target.read_bytes()
        except FileNotFoundError:
            raise NotFoundError(self._address(path)) from None
        except OSError as exc:
            raise self._unavailable(path, exc) from exc

    def open_stream(self, path: str) -> BinaryIO:
        target = self._resolve_existing(path)
        try:
            return open(target, "rb")  # noqa: SIM115
        except OSError as exc:
            raise self._unavailable(path, exc) from exc

    def delete(self, path: str) -> None:
        target = self._resolve_existing(path)
        try:
            target.unlink()
        except FileNotFoundError:
            raise NotFoundError(self._address(path)) from None
        except OSError as exc:
            raise self._unavailable(path, exc) from exc

    def exists(self, path: str) -> bool:
        try:
            target = self._resolve(path)
            return target is not None and target.is_file()
        except (OSError, RuntimeError, ValueError):
            return False

    def is_directory(self, path: str) -> bool:
        try:
            target = self._resolve(path)
            return target is not None and target.is_dir()
        except (OSError, RuntimeError, ValueError):
            return False

    def list_keys(self, prefix: str) -> list[str]:
        prefix_path = self._resolve(prefix)
        if prefix_path is None or not prefix_path.exists():
            return []
        if prefix_path.is_file():
            return [self._relative(prefix_path)]
        keys: list[str] = []
        for p in prefix_path.rglob("*"):
            if p.is_file() and not p.name.startswith(".tmp-"):
                keys.append(self._relative(p))
        return sorted(keys)

    def external_url(self, path: str) -> str | None:
        if self._base_url is None:
            return None
        try:
            target = self._resolve(path)
        except (OSError, RuntimeError, ValueError):
            return None
        if target is None:
            return None
        if target == self._base:
            return f"{self._base_url}/"
        return f"{self._base_url}/{quote(self._relative(target))}"

    def create_directory(
        self, path: str, options: DirectoryOptions = DirectoryOptions()
    ) -> None:
        target = self._resolve_for_write(path)
        try:
            target.mkdir(parents=options.create_parents, exist_ok=True)
            if options.set_permissions:
                os.chmod(target, self._directory_mode)
        except FileNotFoundError as exc:
            raise BackendUnavailableError(
                self._address(path),
                f"Parent directory missing for {self._address(path)}",
            ) from exc
        except OSError as exc:
            raise self._unavailable(path, exc) from exc

    def delete_directory_recursive(self, path: str) -> None:
        target = self._resolve(path)
        if target is None or target == self._base or not target.is_dir():
            raise NotFoundError(self._address(path))
        try:
            shutil.rmtree(target)
        except OSError as exc:
            raise self._unavailable(path, exc) from exc
