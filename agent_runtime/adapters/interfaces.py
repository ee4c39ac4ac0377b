"""Typed interfaces for the orchestrator gateway boundary."""

from typing import Any, Protocol

from agent_runtime.domain import ChildJobRequest, Job, JobErrorSummary


class OrchestratorGatewayPort(Protocol):
    """Port definition for the remote orchestrator job queue.

    Every operation is independently retryable by the caller. Implementations
    raise `GatewayAuthError` on rejected credentials and `GatewayNetworkError`
    on transient failures.
    """

    def gateway_register(self, hostname: str, capabilities: frozenset[str]) -> None:
        """Announce this worker instance and the job types it accepts.

        Args:
            hostname: Worker instance identifier.
            capabilities: Job types this instance is willing to execute.

        Returns:
            None: Registration has no response payload.

        Raises:
            GatewayAuthError: Raised when the credential is rejected.
            GatewayNetworkError: Raised for transient failures.
        """

    def gateway_poll(self, capabilities: frozenset[str], timeout_seconds: float) -> Job | None:
        """Long-poll for the next claimable job.

        Args:
            capabilities: Job types this instance accepts.
            timeout_seconds: Long-poll hint for the server-side wait.

        Returns:
            Job | None: Claimed job, or None when no job became available in time.

        Raises:
            GatewayAuthError: Raised when the credential is rejected.
            GatewayNetworkError: Raised for transient failures.
        """

    def gateway_complete(self, job_id: str, result: Any) -> None:
        """Report successful completion with the handler result.

        Args:
            job_id: Claimed job identifier.
            result: JSON-serializable handler result.

        Returns:
            None: Reporting has no response payload.

        Raises:
            GatewayAuthError: Raised when the credential is rejected.
            GatewayNetworkError: Raised for transient failures.
        """

    def gateway_fail(self, job_id: str, error: JobErrorSummary) -> None:
        """Report job failure with a serializable error summary.

        Args:
            job_id: Claimed job identifier.
            error: Error summary without stack trace.

        Returns:
            None: Reporting has no response payload.

        Raises:
            GatewayAuthError: Raised when the credential is rejected.
            GatewayNetworkError: Raised for transient failures.
        """

    def gateway_update_progress(self, job_id: str, fraction: float, message: str | None = None) -> None:
        """Publish intermediate job progress.

        Args:
            job_id: Claimed job identifier.
            fraction: Progress fraction in [0, 1].
            message: Optional progress message.

        Returns:
            None: Progress updates have no response payload.

        Raises:
            GatewayAuthError: Raised when the credential is rejected.
            GatewayNetworkError: Raised for transient failures.
        """

    def gateway_create_child_job(self, request: ChildJobRequest) -> str:
        """Create a new job on behalf of a running handler.

        Args:
            request: Child job request contract.

        Returns:
            str: Identifier of the created job.

        Raises:
            GatewayValidationError: Raised when the orchestrator rejects the request.
            GatewayAuthError: Raised when the credential is rejected.
            GatewayNetworkError: Raised for transient failures.
        """
