"""Alerting configuration values."""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .env import env_bool, env_int, optional_env_var, require_env_var
from .errors import ConfigurationError

DEFAULT_CUTOFF_HOUR = 18
DEFAULT_CHECK_INTERVAL_SECONDS = 60 * 60
DEFAULT_TIMEZONE = "UTC"
# Monday to Saturday, ``date.weekday()`` numbering
DEFAULT_ALERT_WEEKDAYS: frozenset[int] = frozenset({0, 1, 2, 3, 4, 5})

_WEEKDAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True, slots=True)
class AlertConfig:
    """Settings for the missing-processing alert scheduler."""

    recipient: str
    alert_weekdays: frozenset[int] = field(default_factory=lambda: DEFAULT_ALERT_WEEKDAYS)
    cutoff_hour: int = DEFAULT_CUTOFF_HOUR
    check_interval_seconds: int = DEFAULT_CHECK_INTERVAL_SECONDS
    timezone: str = DEFAULT_TIMEZONE
    notify_on_change: bool = False

    def __post_init__(self) -> None:
        if not _EMAIL_PATTERN.match(self.recipient):
            raise ConfigurationError(f"Invalid alert recipient address: {self.recipient!r}")
        if not 0 <= self.cutoff_hour <= 23:  # noqa: PLR2004
            raise ConfigurationError(f"Cutoff hour must be within 0..23, got {self.cutoff_hour}")
        if self.check_interval_seconds <= 0:
            raise ConfigurationError("Alert check interval must be positive")
        if any(day not in range(7) for day in self.alert_weekdays):
            raise ConfigurationError("Alert weekdays must be within 0..6")
        _ = self.tzinfo

    @property
    def tzinfo(self) -> dt.tzinfo:
        if self.timezone.upper() == "UTC":
            return dt.UTC
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigurationError(f"Unknown timezone: {self.timezone!r}") from exc


def parse_weekdays(value: str) -> frozenset[int]:
    """Parse ``"mon,tue"`` or ``"0,1"`` style weekday lists."""

    days: set[int] = set()
    for raw in value.split(","):
        item = raw.strip().lower()
        if not item:
            continue
        if item.isdigit():
            day = int(item)
        elif item[:3] in _WEEKDAY_NAMES:
            day = _WEEKDAY_NAMES.index(item[:3])
        else:
            raise ConfigurationError(f"Unknown weekday: {raw.strip()!r}")
        if day not in range(7):
            raise ConfigurationError(f"Weekday out of range: {day}")
        days.add(day)
    if not days:
        raise ConfigurationError("At least one alert weekday is required")
    return frozenset(days)


def get_alert_config() -> AlertConfig:
    recipient = require_env_var("VEHICLE_CUSTODY_ALERT_RECIPIENT").strip()
    weekdays_raw = optional_env_var("VEHICLE_CUSTODY_ALERT_WEEKDAYS")
    return AlertConfig(
        recipient=recipient,
        alert_weekdays=(
            parse_weekdays(weekdays_raw) if weekdays_raw is not None else DEFAULT_ALERT_WEEKDAYS
        ),
        cutoff_hour=env_int("VEHICLE_CUSTODY_ALERT_CUTOFF_HOUR", DEFAULT_CUTOFF_HOUR),
        check_interval_seconds=env_int(
            "VEHICLE_CUSTODY_ALERT_INTERVAL", DEFAULT_CHECK_INTERVAL_SECONDS
        ),
        timezone=optional_env_var("VEHICLE_CUSTODY_TIMEZONE") or DEFAULT_TIMEZONE,
        notify_on_change=env_bool("VEHICLE_CUSTODY_NOTIFY_ON_CHANGE", default=False),
    )
