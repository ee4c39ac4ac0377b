"""Typed interfaces for job-layer execution responsibilities."""

from typing import Any, Protocol

from agent_runtime.domain import Job, JobOutcome
from agent_runtime.registry import JobHandlerDescriptor


class JobExecutorPort(Protocol):
    """Port definition for executing one resolved job."""

    def job_execute(self, job: Job, descriptor: JobHandlerDescriptor) -> JobOutcome:
        """Execute one job against its handler descriptor.

        Args:
            job: Claimed job.
            descriptor: Handler descriptor resolved for the job type.

        Returns:
            JobOutcome: Completed or failed outcome. Never raises for handler errors.

        Raises:
            ValueError: Raised when descriptor does not match the job.
        """


class PollerStatusPort(Protocol):
    """Port definition for reading job poller diagnostics."""

    def poller_status_snapshot(self) -> dict[str, Any]:
        """Return poller state, capabilities, counters and fatal error.

        Returns:
            dict[str, Any]: Poller diagnostics snapshot.

        Raises:
            RuntimeError: Raised when diagnostics are unavailable.
        """
