from __future__ import annotations

import logging

import pytest

from vehicle_custody.config import ConfigurationError, configure_logging
from vehicle_custody.config.logging import resolve_log_level


def test_resolve_log_level_defaults_to_info(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("VEHICLE_CUSTODY_LOG_LEVEL", raising=False)

    assert resolve_log_level() == logging.INFO


def test_resolve_log_level_reads_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VEHICLE_CUSTODY_LOG_LEVEL", "debug")

    assert resolve_log_level() == logging.DEBUG
    assert resolve_log_level("warning") == logging.WARNING
    assert resolve_log_level(logging.ERROR) == logging.ERROR


def test_resolve_log_level_rejects_unknown_names() -> None:
    with pytest.raises(ConfigurationError):
        resolve_log_level("chatty")


def test_configure_logging_quiets_sql_engine() -> None:
    configure_logging(level=logging.DEBUG)
    try:
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    finally:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.NOTSET)
