"""Tests for environment-driven configuration."""
from __future__ import annotations

from pathlib import Path

import pytest

from contact_manager.config import (
    DEFAULT_BACKUP_INTERVAL,
    DEFAULT_SLOT,
    ConfigError,
    load_settings,
)

ENV_VARS = [
    "CM_STORAGE_BACKEND",
    "CM_FORCE_FILE",
    "CM_DATA_DIR",
    "CM_STORE_SLOT",
    "CM_FIRESTORE_COLLECTION",
    "CM_FIRESTORE_PROJECT",
    "CM_AUTO_BACKUP",
    "CM_BACKUP_INTERVAL",
    "CM_BACKUP_RETAIN",
    "CM_ENV",
    "CM_ALLOWED_FRONTEND",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = load_settings()
    assert settings.storage_backend == "file"
    assert settings.slot == DEFAULT_SLOT
    assert settings.auto_backup is False
    assert settings.backup_interval == DEFAULT_BACKUP_INTERVAL
    assert settings.backup_retain == 0
    assert settings.environment == "local"
    assert settings.allowed_frontend is None
    assert settings.firestore_project is None


def test_reads_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("CM_STORAGE_BACKEND", "Firestore")
    monkeypatch.setenv("CM_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("CM_STORE_SLOT", "desktop-contacts")
    monkeypatch.setenv("CM_AUTO_BACKUP", "true")
    monkeypatch.setenv("CM_BACKUP_INTERVAL", "60")
    monkeypatch.setenv("CM_BACKUP_RETAIN", "5")
    monkeypatch.setenv("CM_ENV", "staging")
    monkeypatch.setenv("CM_FIRESTORE_PROJECT", "contacts-prod")

    settings = load_settings()

    assert settings.storage_backend == "firestore"
    assert settings.data_dir == Path(tmp_path)
    assert settings.slot == "desktop-contacts"
    assert settings.auto_backup is True
    assert settings.backup_interval == 60
    assert settings.backup_retain == 5
    assert settings.environment == "staging"
    assert settings.firestore_project == "contacts-prod"


def test_force_file_overrides_backend(monkeypatch):
    monkeypatch.setenv("CM_STORAGE_BACKEND", "firestore")
    monkeypatch.setenv("CM_FORCE_FILE", "1")
    assert load_settings().storage_backend == "file"


@pytest.mark.parametrize(
    "name, value",
    [
        ("CM_STORAGE_BACKEND", "sqlite"),
        ("CM_BACKUP_INTERVAL", "soon"),
        ("CM_BACKUP_INTERVAL", "0"),
        ("CM_BACKUP_RETAIN", "-1"),
        ("CM_STORE_SLOT", "   "),
    ],
)
def test_invalid_values(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigError):
        load_settings()
