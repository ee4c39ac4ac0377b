"""Adapter layer package for the orchestrator network boundary."""

from .gateway_errors import (
    GatewayAuthError,
    GatewayError,
    GatewayNetworkError,
    GatewayProtocolError,
    GatewayTimeoutError,
    GatewayValidationError,
)
from .interfaces import OrchestratorGatewayPort
from .orchestrator_http import HttpOrchestratorGateway

__all__ = [
    "GatewayAuthError",
    "GatewayError",
    "GatewayNetworkError",
    "GatewayProtocolError",
    "GatewayTimeoutError",
    "GatewayValidationError",
    "HttpOrchestratorGateway",
    "OrchestratorGatewayPort",
]
