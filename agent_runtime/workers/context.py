"""Per-tick context handed to continuous workers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from agent_runtime.adapters import OrchestratorGatewayPort


@dataclass(frozen=True)
class WorkerTickContext:
    """Infrastructure injected into each tick invocation.

    Attributes:
        worker_name: Registered worker name.
        tick_index: One-based index of the current tick within this process.
        logger: Worker-scoped logger.
        gateway: Orchestrator gateway, None when the worker runs without orchestrator access.
    """

    worker_name: str
    tick_index: int
    logger: logging.Logger
    gateway: OrchestratorGatewayPort | None = None
