from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest

from vehicle_custody.config import storage
from vehicle_custody.config.errors import ConfigurationError


def test_storage_config_prefers_explicit_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("VEHICLE_CUSTODY_DATA_DIR", str(custom))

    result = storage.get_storage_config().resolve_data_dir()

    assert result == custom.resolve()


def test_database_config_uses_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")

    assert storage.get_database_config().uri == "sqlite:///override.db"


def test_database_config_creates_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("VEHICLE_CUSTODY_DATA_DIR", str(tmp_path / "data-dir"))
    monkeypatch.delenv("VEHICLE_CUSTODY_DB_FILENAME", raising=False)

    uri = storage.get_database_config().uri

    expected_path = (tmp_path / "data-dir" / storage.DEFAULT_DB_FILENAME).resolve()
    assert uri == f"sqlite+pysqlite:///{expected_path}"
    assert expected_path.parent.exists()


def test_database_filename_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("VEHICLE_CUSTODY_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("VEHICLE_CUSTODY_DB_FILENAME", "ledger.sqlite")

    config = storage.get_storage_config()

    assert config.database_path(ensure=False) == tmp_path.resolve() / "ledger.sqlite"


def test_database_filename_must_not_be_a_path(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        storage.StorageConfig(data_dir=tmp_path, database_filename="../escape.db")


def test_database_echo_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")
    monkeypatch.setenv("VEHICLE_CUSTODY_DB_ECHO", "true")

    assert storage.get_database_config().echo is True
