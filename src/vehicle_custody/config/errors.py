"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """An environment setting is present but unusable (bad number, zone, address...)."""


class MissingConfigurationError(ConfigurationError):
    """A required ``VEHICLE_CUSTODY_*`` setting is absent or blank."""
