"""Build an :class:`ObjectStore` from configuration.

Configuration is a dict (or a TOML file with the same shape)::

    default_scheme = "public"

    [backends.public]
    provider = "disk"
    config = { base_path = "./files/public", base_url = "http://localhost/files" }

    [backends.session]
    provider = "memory"

    [index]
    provider = "sqlite"
    config = { path = "./files/index.db" }

Default file location: ``~/.config/scheme-store/config.toml``.
Override with the ``SCHEME_STORE_CONFIG`` environment variable.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from scheme_store.address import FilenameSanitizer
from scheme_store.facade.core import ObjectStore
from scheme_store.facade.state import DEFAULT_DIRECTORY, DEFAULT_FILE, StoreState
from scheme_store.index.base import ManagedRecordIndex
from scheme_store.registry import BackendRegistry
from scheme_store.storage.base import StorageBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DEFAULT_CONFIG_DIR = Path("~/.config/scheme-store").expanduser()


class _Registry(Generic[T]):
    """Lazily-populated factory registry.

    Each backend module registers itself via :meth:`register`.
    :meth:`build` resolves a provider name to a factory, calling
    ``factory.from_config(config)`` if available, otherwise
    ``factory(**config)``.
    """

    def __init__(self, label: str) -> None:
        self._label = label
        self._factories: dict[str, type[T]] = {}
        self._defaults_loaded = False

    def register(self, name: str, cls: type[T]) -> None:
        self._factories[name] = cls

    def providers(self) -> list[str]:
        self._ensure_defaults()
        return sorted(self._factories)

    def build(self, provider: str, config: dict[str, Any]) -> T:
        self._ensure_defaults()

        factory = self._factories.get(provider)
        if factory is None:
            raise ValueError(
                f"Unknown {self._label} provider '{provider}'. "
                f"Available: {list(self._factories)}"
            )
        if hasattr(factory, "from_config"):
            return factory.from_config(config)  # type: ignore[return-value]
        return factory(**config)  # type: ignore[return-value]

    def _ensure_defaults(self) -> None:
        if not self._defaults_loaded:
            self._load_defaults()
            self._defaults_loaded = True

    def _load_defaults(self) -> None:
        """Override point: subclasses register their built-in factories here."""


class _StorageRegistry(_Registry[StorageBackend]):
    def _load_defaults(self) -> None:
        from scheme_store.storage.disk import DiskStorage
        from scheme_store.storage.gcs import GCSStorage
        from scheme_store.storage.http import HttpStorage
        from scheme_store.storage.memory import MemoryStorage

        self.register("memory", MemoryStorage)
        self.register("disk", DiskStorage)
        self.register("http", HttpStorage)
        # fails at build time, not here, when google-cloud-storage is missing
        self.register("gcs", GCSStorage)


class _IndexRegistry(_Registry[ManagedRecordIndex]):
    def _load_defaults(self) -> None:
        from scheme_store.index.memory import InMemoryIndex
        from scheme_store.index.sql import SqlIndex

        self.register("memory", InMemoryIndex)
        self.register("sqlite", SqlIndex)
        self.register("url", SqlIndex)


# Singleton instances
storage_registry = _StorageRegistry("storage")
index_registry = _IndexRegistry("index")


# ── Settings ────────────────────────────────────────────────────────


class ProviderSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    provider: str = "memory"
    config: dict[str, Any] = Field(default_factory=dict)


class SanitizerSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    unsafe_pattern: str = r"[^A-Za-z0-9._\-]+"
    replacement: str = "_"
    munge_extensions: bool = True
    allowed_extensions: list[str] = Field(default_factory=list)
    fallback: str = "file"


class StateSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    default_file: str = DEFAULT_FILE
    default_directory: str = DEFAULT_DIRECTORY


def _default_backends() -> dict[str, ProviderSettings]:
    return {
        "public": ProviderSettings(),
        "session": ProviderSettings(),
        "mem": ProviderSettings(),
    }


class StoreSettings(BaseModel):
    """Validated shape of a scheme_store configuration."""

    model_config = ConfigDict(extra="forbid")

    default_scheme: str = "public"
    mirror_scheme: str | None = None
    backends: dict[str, ProviderSettings] = Field(default_factory=_default_backends)
    index: ProviderSettings = Field(default_factory=ProviderSettings)
    sanitizer: SanitizerSettings = Field(default_factory=SanitizerSettings)
    state: StateSettings = Field(default_factory=StateSettings)

    @model_validator(mode="after")
    def _schemes_are_registered(self) -> StoreSettings:
        schemes = {s.lower() for s in self.backends}
        for label, scheme in (
            ("default_scheme", self.default_scheme),
            ("mirror_scheme", self.mirror_scheme),
        ):
            if scheme is not None and scheme.lower() not in schemes:
                raise ValueError(
                    f"{label} '{scheme}' has no backend. Configured: {sorted(schemes)}"
                )
        return self


# ── Building ────────────────────────────────────────────────────────


def build_store(settings: StoreSettings) -> ObjectStore:
    """Instantiate backends and index and wire them into an ObjectStore."""
    registry = BackendRegistry()
    for scheme, backend_cfg in settings.backends.items():
        backend = storage_registry.build(backend_cfg.provider, backend_cfg.config)
        registry.register(scheme, backend)
    registry.freeze()

    index = index_registry.build(settings.index.provider, settings.index.config)
    logger.info(
        "Object store ready: schemes=%s index=%s",
        registry.schemes(),
        settings.index.provider,
    )

    return ObjectStore(
        registry,
        index,
        default_scheme=settings.default_scheme,
        mirror_scheme=settings.mirror_scheme,
        sanitizer=FilenameSanitizer(**settings.sanitizer.model_dump()),
        state=StoreState(**settings.state.model_dump()),
    )


def parse_config(config: dict[str, Any]) -> ObjectStore:
    """Parse a user config dict and return a ready ObjectStore.

    Expected shape::

        {
            "default_scheme": "public",
            "backends": {
                "public": {"provider": "disk", "config": {"base_path": "/tmp"}},
                "session": {"provider": "memory"},
            },
            "index": {"provider": "sqlite", "config": {"path": "index.db"}},
        }

    If no ``backends`` key is present, ``public``, ``session`` and ``mem``
    are all in-memory. If no ``index`` key is present, the index is
    in-memory too.
    """
    return build_store(StoreSettings.model_validate(config))


# ── Files & environment ─────────────────────────────────────────────


def _config_path() -> Path:
    env = os.environ.get("SCHEME_STORE_CONFIG")
    if env:
        return Path(env).expanduser()
    return _DEFAULT_CONFIG_DIR / "config.toml"


def load_config(path: str | Path | None = None) -> StoreSettings:
    """Load settings from TOML, falling back to defaults + env overrides."""
    config_file = Path(path).expanduser() if path is not None else _config_path()
    data: dict[str, Any] = {}

    if config_file.exists():
        with open(config_file, "rb") as f:
            data = tomllib.load(f)
        logger.debug("Loaded configuration from %s", config_file)

    # Environment variables always take precedence
    default_scheme = os.environ.get("SCHEME_STORE_DEFAULT_SCHEME")
    if default_scheme:
        data["default_scheme"] = default_scheme
    index_url = os.environ.get("SCHEME_STORE_INDEX_URL")
    if index_url:
        data["index"] = {"provider": "url", "config": {"url": index_url}}

    return StoreSettings.model_validate(data)


def config_path_display() -> str:
    return str(_config_path())
