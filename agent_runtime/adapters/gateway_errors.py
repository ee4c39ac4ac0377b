"""Project-native typed exceptions for orchestrator gateway failures."""

from __future__ import annotations


class GatewayError(Exception):
    """Base exception for gateway-level orchestrator failures.

    Attributes:
        status_code: Optional upstream HTTP status code.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GatewayNetworkError(GatewayError, ConnectionError):
    """Transient transport or upstream availability failure. Callers retry with backoff."""


class GatewayTimeoutError(GatewayNetworkError, TimeoutError):
    """Transport timeout while waiting for an orchestrator response."""


class GatewayAuthError(GatewayError, PermissionError):
    """Bearer credential rejected (`401`/`403`). Fatal to the job poller."""


class GatewayValidationError(GatewayError, ValueError):
    """Orchestrator rejected a request body, for example an invalid child job."""


class GatewayProtocolError(GatewayError, RuntimeError):
    """Orchestrator response did not match the expected wire contract."""
