"""Per-job execution context handed to discrete job handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from agent_runtime.adapters import GatewayError, OrchestratorGatewayPort
from agent_runtime.domain import ChildJobRequest, Job


class _JobLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter prefixing records with the job identity."""

    def process(self, msg, kwargs):
        return f"[job_id={self.extra['job_id']} job_type={self.extra['job_type']}] {msg}", kwargs


class JobScopedGateway:
    """Restricted orchestrator surface bound to one job.

    Handlers can publish progress and create child jobs. Polling and
    reporting stay with the poller.
    """

    def __init__(self, gateway: OrchestratorGatewayPort, job: Job, logger: logging.LoggerAdapter):
        self._gateway = gateway
        self._job_id = job.id
        self._logger = logger

    def gateway_update_progress(self, fraction: float, message: str | None = None) -> bool:
        """Publish progress for the current job on a best-effort basis.

        Args:
            fraction: Progress fraction in [0, 1].
            message: Optional progress message.

        Returns:
            bool: True when the orchestrator accepted the update, False when it was dropped.

        Raises:
            ValueError: Raised when fraction is outside [0, 1].
        """

        if fraction < 0.0 or fraction > 1.0:
            raise ValueError("fraction must be within [0, 1]")

        try:
            self._gateway.gateway_update_progress(job_id=self._job_id, fraction=fraction, message=message)
        except GatewayError as error:
            self._logger.warning("Progress update dropped fraction=%s error=%s", fraction, error)
            return False
        return True

    def gateway_create_child_job(self, job_type: str, payload: Any) -> str:
        """Create a child job whose parent is the current job.

        Args:
            job_type: Child job type.
            payload: Child job payload.

        Returns:
            str: Created child job identifier.

        Raises:
            ValueError: Raised when job_type is blank.
            GatewayError: Raised when the orchestrator call fails.
        """

        normalized_job_type = job_type.strip()
        if not normalized_job_type:
            raise ValueError("job_type must not be blank")

        child_job_id = self._gateway.gateway_create_child_job(
            ChildJobRequest(type=normalized_job_type, payload=payload, parent_job_id=self._job_id)
        )
        self._logger.info("Created child job child_job_id=%s job_type=%s", child_job_id, normalized_job_type)
        return child_job_id


@dataclass(frozen=True)
class ExecutionContext:
    """Fresh per-invocation context for one job handler call.

    Attributes:
        job_id: Identifier of the job being executed.
        gateway: Restricted job-scoped orchestrator surface.
        logger: Logger adapter tagging records with the job id and type.
    """

    job_id: str
    gateway: JobScopedGateway
    logger: logging.LoggerAdapter


def job_build_execution_context(job: Job, gateway: OrchestratorGatewayPort) -> ExecutionContext:
    """Build a new execution context scoped to one job.

    Args:
        job: Job being executed.
        gateway: Full orchestrator gateway, wrapped into a restricted surface.

    Returns:
        ExecutionContext: Context never shared with another job.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    job_logger = _JobLoggerAdapter(
        logging.getLogger(f"agent_runtime.job.{job.type}"),
        {"job_id": job.id, "job_type": job.type},
    )
    return ExecutionContext(
        job_id=job.id,
        gateway=JobScopedGateway(gateway=gateway, job=job, logger=job_logger),
        logger=job_logger,
    )
