"""Root logger setup for the command line."""

from __future__ import annotations

import logging

from .env import optional_env_var
from .errors import ConfigurationError

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
# SQL statement logging is controlled by VEHICLE_CUSTODY_DB_ECHO instead
_NOISY_LOGGERS = ("sqlalchemy.engine",)


def resolve_log_level(value: int | str | None = None) -> int:
    """Accept a level number or name; fall back to ``VEHICLE_CUSTODY_LOG_LEVEL`` then INFO."""

    if isinstance(value, int):
        return value
    name = (value or optional_env_var("VEHICLE_CUSTODY_LOG_LEVEL") or "INFO").upper()
    level = logging.getLevelNamesMapping().get(name)
    if level is None:
        raise ConfigurationError(f"Unknown log level: {name!r}")
    return level


def configure_logging(*, level: int | str | None = None, force: bool = False) -> None:
    """Initialise the root logger once with a terse format suitable for CLI output.

    Pass ``force=True`` to reconfigure during tests or specialised entry points.
    """

    resolved = resolve_log_level(level)
    logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
