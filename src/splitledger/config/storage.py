"""Where the ledger database and the HTTP cache live on disk."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

APP_DIR_NAME: Final[str] = "splitledger"
DATA_DIR_ENV: Final[str] = "SPLITLEDGER_DATA_DIR"
DATABASE_URI_ENV: Final[str] = "DATABASE_URI"


def platform_data_dir() -> Path:
    """``$XDG_DATA_HOME/splitledger`` on POSIX, ``%LOCALAPPDATA%\\splitledger`` on Windows."""

    if os.name == "nt":
        root = optional_env_var("LOCALAPPDATA")
        fallback = Path.home() / "AppData" / "Local"
    else:
        root = optional_env_var("XDG_DATA_HOME")
        fallback = Path.home() / ".local" / "share"
    return (Path(root) if root else fallback) / APP_DIR_NAME


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = "splitledger.db"
    http_cache_filename: str = "http_cache.db"

    def _file(self, filename: str, *, ensure: bool) -> Path:
        base = self.data_dir.expanduser().resolve()
        if ensure:
            base.mkdir(parents=True, exist_ok=True)
        return base / filename

    def database_path(self, *, ensure: bool = True) -> Path:
        return self._file(self.database_filename, ensure=ensure)

    def http_cache_path(self, *, ensure: bool = True) -> Path:
        return self._file(self.http_cache_filename, ensure=ensure)


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def get_storage_config() -> StorageConfig:
    explicit = optional_env_var(DATA_DIR_ENV)
    return StorageConfig(data_dir=Path(explicit) if explicit else platform_data_dir())


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file inside the data directory."""

    uri = optional_env_var(DATABASE_URI_ENV)
    if uri is None:
        uri = f"sqlite+pysqlite:///{(storage or get_storage_config()).database_path()}"
    return DatabaseConfig(uri=uri)
