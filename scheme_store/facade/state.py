from __future__ import annotations

import threading

DEFAULT_FILE = "session://drupal.txt"
DEFAULT_DIRECTORY = "session://directory1"


class StoreState:
    """Remembers the last file and directory addresses the façade touched.

    Front ends use these to pre-fill their next request.
    """

    def __init__(
        self,
        default_file: str = DEFAULT_FILE,
        default_directory: str = DEFAULT_DIRECTORY,
    ) -> None:
        self._initial = (default_file, default_directory)
        self._file = default_file
        self._directory = default_directory
        self._lock = threading.Lock()

    @property
    def default_file(self) -> str:
        return self._file

    @property
    def default_directory(self) -> str:
        return self._directory

    def remember_file(self, address: str) -> None:
        with self._lock:
            self._file = address

    def remember_directory(self, address: str) -> None:
        with self._lock:
            self._directory = address

    def reset(self) -> None:
        with self._lock:
            self._file, self._directory = self._initial
