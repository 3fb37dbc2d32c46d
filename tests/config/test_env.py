from __future__ import annotations

import pytest

from vehicle_custody.config import MissingConfigurationError, require_env_var, require_env_vars
from vehicle_custody.config.env import env_bool, env_int, optional_env_var
from vehicle_custody.config.errors import ConfigurationError


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_A", raising=False)
    monkeypatch.delenv("MISSING_B", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_require_env_var_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_var("EXAMPLE_VAR")


def test_optional_env_var_strips_and_blanks_to_none(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "  value ")
    assert optional_env_var("EXAMPLE_VAR") == "value"

    monkeypatch.setenv("EXAMPLE_VAR", "")
    assert optional_env_var("EXAMPLE_VAR") is None


def test_env_int(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_INT", raising=False)
    assert env_int("EXAMPLE_INT", 7) == 7

    monkeypatch.setenv("EXAMPLE_INT", "42")
    assert env_int("EXAMPLE_INT", 7) == 42

    monkeypatch.setenv("EXAMPLE_INT", "forty-two")
    with pytest.raises(ConfigurationError):
        env_int("EXAMPLE_INT", 7)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), ("YES", True), ("on", True), ("0", False), ("false", False), ("Off", False)],
)
def test_env_bool_values(monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:  # noqa: FBT001
    monkeypatch.setenv("EXAMPLE_FLAG", raw)

    assert env_bool("EXAMPLE_FLAG", default=not expected) is expected


def test_env_bool_rejects_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_FLAG", "maybe")

    with pytest.raises(ConfigurationError):
        env_bool("EXAMPLE_FLAG", default=False)
