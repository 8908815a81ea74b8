"""Where payproof keeps its database and uploaded payment screenshots."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "payproof"
DEFAULT_DB_FILENAME: Final[str] = "payproof.db"
PAYMENT_UPLOAD_SUBDIR: Final[str] = "uploads/payments"
# URL prefix under which stored screenshots are served back to admins
PAYMENT_PUBLIC_PREFIX: Final[str] = "/api/files/payments/"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Resolved storage locations.

    Screenshots live under ``<data_dir>/uploads/payments`` unless ``upload_dir`` is
    set explicitly, which lets a deployment put uploads on a separate volume.
    """

    data_dir: Path
    upload_dir: Path | None = None

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def payment_upload_dir(self) -> Path:
        if self.upload_dir is not None:
            return self.upload_dir.expanduser().resolve()
        return self.resolve_data_dir() / PAYMENT_UPLOAD_SUBDIR

    def sqlite_uri(self) -> str:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return f"sqlite+pysqlite:///{data_dir / DEFAULT_DB_FILENAME}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _path_env(name: str) -> Path | None:
    raw = os.getenv(name)
    return Path(raw) if raw and raw.strip() else None


def _default_data_dir() -> Path:
    xdg_data_home = _path_env("XDG_DATA_HOME") or Path.home() / ".local" / "share"
    return xdg_data_home / APP_DIR_NAME


def get_storage_config() -> StorageConfig:
    """Read ``PAYPROOF_DATA_DIR`` and ``PAYPROOF_UPLOAD_DIR``; both are optional."""

    return StorageConfig(
        data_dir=_path_env("PAYPROOF_DATA_DIR") or _default_data_dir(),
        upload_dir=_path_env("PAYPROOF_UPLOAD_DIR"),
    )


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a sqlite file inside the data directory."""

    uri = os.getenv("DATABASE_URI")
    if uri and uri.strip():
        return DatabaseConfig(uri=uri.strip())
    return DatabaseConfig(uri=(storage or get_storage_config()).sqlite_uri())


def get_database_uri() -> str:
    return get_database_config().uri
