"""Configuration helpers for the Contact Manager."""
from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Optional


DEFAULT_DATA_DIR = Path(__file__).resolve().parents[1] / "contact_data"
DEFAULT_SLOT = "contact-manager-db"
DEFAULT_BACKUP_INTERVAL = 24 * 60 * 60
STORAGE_BACKENDS = ("file", "firestore", "memory")


class ConfigError(RuntimeError):
    """Raised when configuration values are missing or invalid."""


@dataclass(slots=True)
class Settings:
    """Runtime configuration shared by the CLI and the API."""

    storage_backend: str = "file"
    data_dir: Path = DEFAULT_DATA_DIR
    slot: str = DEFAULT_SLOT
    firestore_collection: str = "contact_slots"
    firestore_project: Optional[str] = None
    auto_backup: bool = False
    backup_interval: int = DEFAULT_BACKUP_INTERVAL
    backup_retain: int = 0
    environment: str = "local"
    allowed_frontend: Optional[str] = None


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}.") from exc
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {value}.")
    return value


def _flag_env(name: str) -> bool:
    return os.getenv(name, "0").strip().lower() in {"1", "true", "yes", "on"}


def load_settings() -> Settings:
    """Load settings from environment variables.

    Returns:
        Settings with every value resolved.

    Raises:
        ConfigError: if a numeric value or the storage backend is invalid.
    """

    backend = os.getenv("CM_STORAGE_BACKEND", "file").strip().lower()
    if _flag_env("CM_FORCE_FILE"):
        backend = "file"
    if backend not in STORAGE_BACKENDS:
        raise ConfigError(
            f"Unknown storage backend {backend!r}. "
            f"Set CM_STORAGE_BACKEND to one of: {', '.join(STORAGE_BACKENDS)}."
        )

    interval = _int_env("CM_BACKUP_INTERVAL", DEFAULT_BACKUP_INTERVAL)
    if interval == 0:
        raise ConfigError("CM_BACKUP_INTERVAL must be greater than zero.")

    slot = os.getenv("CM_STORE_SLOT", DEFAULT_SLOT).strip()
    if not slot:
        raise ConfigError("CM_STORE_SLOT must not be empty.")

    return Settings(
        storage_backend=backend,
        data_dir=Path(os.getenv("CM_DATA_DIR", str(DEFAULT_DATA_DIR))),
        slot=slot,
        firestore_collection=os.getenv("CM_FIRESTORE_COLLECTION", "contact_slots"),
        firestore_project=os.getenv("CM_FIRESTORE_PROJECT", "").strip() or None,
        auto_backup=_flag_env("CM_AUTO_BACKUP"),
        backup_interval=interval,
        backup_retain=_int_env("CM_BACKUP_RETAIN", 0),
        environment=os.getenv("CM_ENV", "local"),
        allowed_frontend=os.getenv("CM_ALLOWED_FRONTEND", "").strip() or None,
    )
