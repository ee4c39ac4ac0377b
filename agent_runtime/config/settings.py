"""Typed runtime settings with dotenv support and startup validation."""

import socket

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SettingsLoadError(RuntimeError):
    """Raised when runtime settings cannot be loaded or validated."""


class RuntimeSettings(BaseSettings):
    """Worker runtime settings for orchestrator access, polling and supervision.

    Environment variable names map directly to field names in uppercase.
    Example: `orchestrator_api_url` reads from `ORCHESTRATOR_API_URL`.

    Attributes:
        environment_name: Runtime environment label.
        orchestrator_api_url: Base URL of the orchestrator HTTP API.
        orchestrator_api_token: Shared bearer credential sent on every call.
        worker_hostname: Identifier reported to the orchestrator on registration.
        registry_module: Dotted module path exposing generated handler registrations.
        capability_filter: Optional comma-separated allow-list narrowing registered job types.
        poll_timeout_seconds: Long-poll hint sent with every poll request.
        request_timeout_seconds: Transport timeout for non-poll requests.
        poll_backoff_base_seconds: Base delay for poll retry backoff.
        poll_backoff_max_seconds: Cap for poll retry backoff.
        report_retry_attempts: Attempts for complete/fail before giving up.
        report_backoff_base_seconds: Base delay for report retry backoff.
        report_backoff_max_seconds: Cap for report retry backoff.
        register_retry_attempts: Attempts for startup registration.
        backoff_jitter_min_multiplier: Minimum retry jitter multiplier.
        backoff_jitter_max_multiplier: Maximum retry jitter multiplier.
        supervisor_restart_delay_seconds: Fixed delay before respawning an exited worker.
        supervisor_shutdown_grace_seconds: Time granted to children for voluntary exit.
        supervisor_monitor_interval_seconds: Interval between child exit checks.
        supervisor_max_restarts: Optional restart ceiling per worker, unlimited when unset.
        log_level: Root logging level name.
        status_api_enabled: Whether the status HTTP API is served.
        status_api_host: Host interface for the status API.
        status_api_port: Status API port.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment_name: str = Field(default="development")
    orchestrator_api_url: str = Field(min_length=1)
    orchestrator_api_token: str = Field(min_length=1)
    worker_hostname: str = Field(default_factory=socket.gethostname, min_length=1)
    registry_module: str = Field(default="agent_runtime.handlers", min_length=1)
    capability_filter: str = Field(default="")
    poll_timeout_seconds: float = Field(default=30.0, gt=0)
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    poll_backoff_base_seconds: float = Field(default=1.0, ge=0)
    poll_backoff_max_seconds: float = Field(default=30.0, gt=0)
    report_retry_attempts: int = Field(default=5, ge=1)
    report_backoff_base_seconds: float = Field(default=1.0, ge=0)
    report_backoff_max_seconds: float = Field(default=15.0, gt=0)
    register_retry_attempts: int = Field(default=10, ge=1)
    backoff_jitter_min_multiplier: float = Field(default=0.5, gt=0)
    backoff_jitter_max_multiplier: float = Field(default=1.5, gt=0)
    supervisor_restart_delay_seconds: float = Field(default=5.0, ge=0)
    supervisor_shutdown_grace_seconds: float = Field(default=10.0, ge=0)
    supervisor_monitor_interval_seconds: float = Field(default=0.5, gt=0)
    supervisor_max_restarts: int | None = Field(default=None, ge=0)
    log_level: str = Field(default="INFO")
    status_api_enabled: bool = Field(default=False)
    status_api_host: str = Field(default="127.0.0.1")
    status_api_port: int = Field(default=8080, ge=1, le=65535)

    @field_validator("orchestrator_api_url", "orchestrator_api_token", "worker_hostname", "registry_module")
    @classmethod
    def _validate_non_empty_string(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("value must not be blank")
        return stripped_value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized_value = value.strip().upper()
        if normalized_value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("log_level must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return normalized_value

    @field_validator("poll_backoff_max_seconds")
    @classmethod
    def _validate_poll_backoff_cap_bounds(cls, value: float, info) -> float:
        backoff_base_seconds = float(info.data.get("poll_backoff_base_seconds", 1.0))
        if value < backoff_base_seconds:
            raise ValueError("poll_backoff_max_seconds must be greater than or equal to poll_backoff_base_seconds")
        return value

    @field_validator("report_backoff_max_seconds")
    @classmethod
    def _validate_report_backoff_cap_bounds(cls, value: float, info) -> float:
        backoff_base_seconds = float(info.data.get("report_backoff_base_seconds", 1.0))
        if value < backoff_base_seconds:
            raise ValueError(
                "report_backoff_max_seconds must be greater than or equal to report_backoff_base_seconds"
            )
        return value

    @field_validator("backoff_jitter_max_multiplier")
    @classmethod
    def _validate_jitter_bounds(cls, value: float, info) -> float:
        jitter_min_multiplier = float(info.data.get("backoff_jitter_min_multiplier", 0.5))
        if value < jitter_min_multiplier:
            raise ValueError(
                "backoff_jitter_max_multiplier must be greater than or equal to backoff_jitter_min_multiplier"
            )
        return value

    def settings_capability_filter(self) -> frozenset[str]:
        """Return the parsed capability allow-list.

        Returns:
            frozenset[str]: Job types named by `capability_filter`, empty when unset.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        return frozenset(item.strip() for item in self.capability_filter.split(",") if item.strip())


def config_load_settings() -> RuntimeSettings:
    """Load and validate runtime settings from environment and dotenv.

    Returns:
        RuntimeSettings: Validated runtime settings object.

    Raises:
        SettingsLoadError: Raised when required settings are missing or invalid.
    """

    try:
        return RuntimeSettings()
    except ValidationError as error:
        raise SettingsLoadError(
            f"Startup configuration validation failed. Update .env or environment variables. Details: {error}"
        ) from error
