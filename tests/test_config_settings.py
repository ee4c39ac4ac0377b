"""Tests for runtime settings loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from agent_runtime.config import RuntimeSettings, SettingsLoadError, config_load_settings

_ORCHESTRATOR_ENV_NAMES = (
    "ORCHESTRATOR_API_URL",
    "ORCHESTRATOR_API_TOKEN",
    "CAPABILITY_FILTER",
    "LOG_LEVEL",
    "POLL_BACKOFF_BASE_SECONDS",
    "POLL_BACKOFF_MAX_SECONDS",
    "SUPERVISOR_MAX_RESTARTS",
)


@pytest.fixture(name="isolated_environment")
def fixture_isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> pytest.MonkeyPatch:
    """Run settings tests without inherited environment or dotenv file.

    Args:
        monkeypatch: Pytest monkeypatch fixture.
        tmp_path: Empty working directory without `.env`.

    Returns:
        pytest.MonkeyPatch: Monkeypatch fixture for further env overrides.

    Raises:
        RuntimeError: This fixture does not raise runtime errors.
    """

    monkeypatch.chdir(tmp_path)
    for env_name in _ORCHESTRATOR_ENV_NAMES:
        monkeypatch.delenv(env_name, raising=False)
    return monkeypatch


def test_config_load_settings_reads_environment(isolated_environment: pytest.MonkeyPatch) -> None:
    """Load required values from environment and apply defaults.

    Args:
        isolated_environment: Isolated monkeypatch fixture.

    Returns:
        None: Assertions validate loaded settings.

    Raises:
        AssertionError: Raised when values or defaults are wrong.
    """

    isolated_environment.setenv("ORCHESTRATOR_API_URL", " https://orchestrator.test/api ")
    isolated_environment.setenv("ORCHESTRATOR_API_TOKEN", "secret-token")
    isolated_environment.setenv("LOG_LEVEL", "debug")

    settings = config_load_settings()

    assert settings.orchestrator_api_url == "https://orchestrator.test/api"
    assert settings.orchestrator_api_token == "secret-token"
    assert settings.log_level == "DEBUG"
    assert settings.registry_module == "agent_runtime.handlers"
    assert settings.poll_timeout_seconds == 30.0
    assert settings.supervisor_max_restarts is None
    assert settings.worker_hostname


def test_config_load_settings_missing_token_raises_settings_error(isolated_environment: pytest.MonkeyPatch) -> None:
    """Abort startup when the orchestrator credential is missing.

    Args:
        isolated_environment: Isolated monkeypatch fixture.

    Returns:
        None: Assertions validate startup validation error.

    Raises:
        AssertionError: Raised when missing credentials are accepted.
    """

    isolated_environment.setenv("ORCHESTRATOR_API_URL", "https://orchestrator.test/api")

    with pytest.raises(SettingsLoadError, match="orchestrator_api_token"):
        config_load_settings()


def test_config_settings_parse_capability_filter(isolated_environment: pytest.MonkeyPatch) -> None:
    """Parse comma-separated capability filter into a set of job types.

    Args:
        isolated_environment: Isolated monkeypatch fixture.

    Returns:
        None: Assertions validate capability filter parsing.

    Raises:
        AssertionError: Raised when parsing keeps blanks or whitespace.
    """

    isolated_environment.setenv("ORCHESTRATOR_API_URL", "https://orchestrator.test/api")
    isolated_environment.setenv("ORCHESTRATOR_API_TOKEN", "secret-token")
    isolated_environment.setenv("CAPABILITY_FILTER", " echo, resize ,,")

    settings = config_load_settings()

    assert settings.settings_capability_filter() == frozenset({"echo", "resize"})

    isolated_environment.delenv("CAPABILITY_FILTER")
    assert RuntimeSettings(
        _env_file=None,
        orchestrator_api_url="https://orchestrator.test/api",
        orchestrator_api_token="secret-token",
    ).settings_capability_filter() == frozenset()


@pytest.mark.parametrize(
    ("overrides", "error_fragment"),
    [
        ({"poll_backoff_base_seconds": 10.0, "poll_backoff_max_seconds": 5.0}, "poll_backoff_max_seconds"),
        ({"log_level": "verbose"}, "log_level"),
        ({"orchestrator_api_token": "   "}, "must not be blank"),
        ({"backoff_jitter_min_multiplier": 1.2, "backoff_jitter_max_multiplier": 1.0}, "jitter"),
    ],
)
def test_config_settings_reject_invalid_values(
    isolated_environment: pytest.MonkeyPatch,
    overrides: dict[str, object],
    error_fragment: str,
) -> None:
    """Reject inconsistent or malformed settings values.

    Args:
        isolated_environment: Isolated monkeypatch fixture.
        overrides: Invalid field overrides.
        error_fragment: Expected validation message fragment.

    Returns:
        None: Assertions validate settings validation.

    Raises:
        AssertionError: Raised when invalid settings are accepted.
    """

    _ = isolated_environment
    values: dict[str, object] = {
        "orchestrator_api_url": "https://orchestrator.test/api",
        "orchestrator_api_token": "secret-token",
        **overrides,
    }

    with pytest.raises(ValueError, match=error_fragment):
        RuntimeSettings(_env_file=None, **values)
