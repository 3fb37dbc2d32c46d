"""Application configuration helpers."""

from __future__ import annotations

from .alerts import AlertConfig, get_alert_config, parse_weekdays
from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "AlertConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "configure_logging",
    "get_alert_config",
    "get_database_config",
    "get_storage_config",
    "parse_weekdays",
    "require_env_var",
    "require_env_vars",
]
