"""Long-poll job acquisition loop with execute and report stages."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from agent_runtime.adapters import (
    GatewayAuthError,
    GatewayError,
    GatewayNetworkError,
    GatewayProtocolError,
    OrchestratorGatewayPort,
)
from agent_runtime.domain import (
    CAPABILITY_MISMATCH_ERROR_KIND,
    HANDLER_ERROR_KIND,
    Job,
    JobCompletedOutcome,
    JobErrorSummary,
    JobFailedOutcome,
    JobOutcome,
    RetryBackoffStrategy,
)
from agent_runtime.registry import HandlerRegistry

from .interfaces import JobExecutorPort

logger = logging.getLogger(__name__)


class JobPollerState(str, Enum):
    """Lifecycle states of the job poller."""

    IDLE = "idle"
    REGISTERING = "registering"
    POLLING = "polling"
    EXECUTING = "executing"
    REPORTING = "reporting"
    STOPPED = "stopped"


@dataclass(frozen=True)
class JobPollerConfig:
    """Configuration values for the job poller.

    Attributes:
        hostname: Worker instance identifier sent on registration.
        poll_timeout_seconds: Long-poll hint sent with each poll.
        poll_backoff: Backoff for poll retries after network errors. Attempts are unbounded.
        report_backoff: Backoff between complete/fail retries.
        report_retry_attempts: Total complete/fail attempts before an outcome is abandoned.
        register_retry_attempts: Total registration attempts before startup fails.
        capability_filter: Optional allow-list narrowing registered job types.
    """

    hostname: str
    poll_timeout_seconds: float = 30.0
    poll_backoff: RetryBackoffStrategy = field(
        default_factory=lambda: RetryBackoffStrategy(backoff_base_seconds=1.0, max_backoff_seconds=30.0)
    )
    report_backoff: RetryBackoffStrategy = field(
        default_factory=lambda: RetryBackoffStrategy(backoff_base_seconds=1.0, max_backoff_seconds=15.0)
    )
    report_retry_attempts: int = 5
    register_retry_attempts: int = 10
    capability_filter: frozenset[str] = frozenset()


class JobPoller:
    """Single-sequence poll, execute and report loop.

    Only one job is in flight at a time, and the report for a job always
    precedes the next poll.
    """

    def __init__(
        self,
        gateway: OrchestratorGatewayPort,
        registry: HandlerRegistry,
        executor: JobExecutorPort,
        config: JobPollerConfig,
    ):
        """Initialize poller dependencies and derive the capability set.

        Args:
            gateway: Orchestrator gateway.
            registry: Handler registry.
            executor: Job executor.
            config: Poller configuration.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies or config values are invalid, or no capability remains.
        """

        if gateway is None:
            raise ValueError("gateway must not be None")
        if registry is None:
            raise ValueError("registry must not be None")
        if executor is None:
            raise ValueError("executor must not be None")
        if not config.hostname.strip():
            raise ValueError("config.hostname must not be blank")
        if config.poll_timeout_seconds <= 0:
            raise ValueError("config.poll_timeout_seconds must be > 0")
        if config.report_retry_attempts < 1:
            raise ValueError("config.report_retry_attempts must be >= 1")
        if config.register_retry_attempts < 1:
            raise ValueError("config.register_retry_attempts must be >= 1")

        self._gateway = gateway
        self._registry = registry
        self._executor = executor
        self._config = config
        self._capabilities = self._poller_derive_capabilities()
        self._stop_event = threading.Event()
        self._state = JobPollerState.IDLE
        self._fatal_error: str | None = None
        self._counters = {
            "jobs_completed": 0,
            "jobs_failed": 0,
            "jobs_capability_mismatch": 0,
            "outcomes_unreportable": 0,
            "poll_network_errors": 0,
        }

    @property
    def state(self) -> JobPollerState:
        return self._state

    @property
    def capabilities(self) -> frozenset[str]:
        return self._capabilities

    def poller_run(self) -> None:
        """Register, then loop poll, execute and report until stopped.

        Returns:
            None: Returns after `poller_stop` once the current report completes.

        Raises:
            GatewayAuthError: Raised when the credential is rejected. The loop is stopped.
            GatewayNetworkError: Raised when registration never succeeds.
        """

        try:
            self._poller_register()
            while not self._stop_event.is_set():
                job = self._poller_poll_with_backoff()
                if job is None:
                    continue
                self._poller_process_job(job)
        except GatewayAuthError as error:
            self._fatal_error = str(error)
            logger.critical(
                "Orchestrator rejected credential; job poller stopping hostname=%s state=%s error=%s",
                self._config.hostname,
                self._state.value,
                error,
            )
            raise
        finally:
            self._state = JobPollerState.STOPPED
            logger.info("Job poller stopped hostname=%s", self._config.hostname)

    def poller_stop(self) -> None:
        """Request loop exit after the current report step; safe from any thread."""

        if not self._stop_event.is_set():
            logger.info("Job poller stop requested state=%s", self._state.value)
        self._stop_event.set()

    def poller_status_snapshot(self) -> dict[str, Any]:
        """Return diagnostics for the status API.

        Returns:
            dict[str, Any]: State, capabilities, counters and fatal error.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        return {
            "state": self._state.value,
            "hostname": self._config.hostname,
            "capabilities": sorted(self._capabilities),
            "stop_requested": self._stop_event.is_set(),
            "fatal_error": self._fatal_error,
            **self._counters,
        }

    def _poller_derive_capabilities(self) -> frozenset[str]:
        registered_capabilities = self._registry.registry_list_capabilities()
        capability_filter = self._config.capability_filter
        if not capability_filter:
            capabilities = registered_capabilities
        else:
            unknown_capabilities = capability_filter - registered_capabilities
            if unknown_capabilities:
                logger.warning("Capability filter names unregistered job types=%s", sorted(unknown_capabilities))
            capabilities = registered_capabilities & capability_filter

        if not capabilities:
            raise ValueError("job poller needs at least one registered capability")
        return frozenset(capabilities)

    def _poller_register(self) -> None:
        """Register this instance, retrying transient failures with backoff.

        Returns:
            None: Registers as side effect.

        Raises:
            GatewayAuthError: Raised when the credential is rejected.
            GatewayNetworkError: Raised when all registration attempts failed.
        """

        self._state = JobPollerState.REGISTERING
        attempts = self._config.register_retry_attempts
        for retry_index in range(attempts):
            try:
                self._gateway.gateway_register(hostname=self._config.hostname, capabilities=self._capabilities)
            except GatewayNetworkError as error:
                if retry_index + 1 >= attempts:
                    logger.error("Registration failed after attempts=%s error=%s", attempts, error)
                    raise
                wait_seconds = self._config.poll_backoff.strategy_calculate_retry_wait_seconds(retry_index)
                logger.warning(
                    "Registration attempt=%s failed, retrying in %.2fs error=%s",
                    retry_index + 1,
                    wait_seconds,
                    error,
                )
                if self._poller_wait(wait_seconds):
                    return
                continue

            logger.info(
                "Registered with orchestrator hostname=%s capabilities=%s",
                self._config.hostname,
                sorted(self._capabilities),
            )
            return

    def _poller_poll_with_backoff(self) -> Job | None:
        """Poll once, retrying only the poll call on transient failures.

        Returns:
            Job | None: Claimed job, or None when the long-poll expired or stop was requested.

        Raises:
            GatewayAuthError: Raised when the credential is rejected.
        """

        self._state = JobPollerState.POLLING
        retry_index = 0
        while not self._stop_event.is_set():
            try:
                return self._gateway.gateway_poll(
                    capabilities=self._capabilities,
                    timeout_seconds=self._config.poll_timeout_seconds,
                )
            except (GatewayNetworkError, GatewayProtocolError) as error:
                self._counters["poll_network_errors"] += 1
                wait_seconds = self._config.poll_backoff.strategy_calculate_retry_wait_seconds(retry_index)
                logger.warning(
                    "Poll failed consecutive_failures=%s, retrying in %.2fs error=%s",
                    retry_index + 1,
                    wait_seconds,
                    error,
                )
                retry_index += 1
                if self._poller_wait(wait_seconds):
                    return None
        return None

    def _poller_process_job(self, job: Job) -> None:
        """Resolve, execute and report one claimed job.

        Args:
            job: Claimed job.

        Returns:
            None: Reports outcome as side effect.

        Raises:
            GatewayAuthError: Raised when reporting is rejected for credentials.
        """

        logger.info("Claimed job job_id=%s job_type=%s", job.id, job.type)
        descriptor = self._registry.registry_resolve(job.type)
        if descriptor is None:
            self._counters["jobs_capability_mismatch"] += 1
            logger.error("No handler registered for job_id=%s job_type=%s", job.id, job.type)
            outcome: JobOutcome = JobFailedOutcome(
                error=JobErrorSummary(
                    kind=CAPABILITY_MISMATCH_ERROR_KIND,
                    message=f"no handler registered for job type={job.type}",
                )
            )
        else:
            self._state = JobPollerState.EXECUTING
            try:
                outcome = self._executor.job_execute(job=job, descriptor=descriptor)
            except Exception as error:  # pylint: disable=broad-exception-caught
                logger.error(
                    "Job execution aborted outside the handler job_id=%s job_type=%s",
                    job.id,
                    job.type,
                    exc_info=True,
                )
                outcome = JobFailedOutcome(
                    error=JobErrorSummary(kind=HANDLER_ERROR_KIND, message=f"{type(error).__name__}: {error}")
                )

        self._state = JobPollerState.REPORTING
        self._poller_report(job=job, outcome=outcome)

    def _poller_report(self, job: Job, outcome: JobOutcome) -> None:
        """Report one outcome with bounded retries.

        Stop requests do not shorten report retries. An outcome that still
        cannot be delivered is logged and abandoned; the job stays claimed
        until the orchestrator times it out.

        Args:
            job: Executed job.
            outcome: Executor outcome.

        Returns:
            None: Reports as side effect.

        Raises:
            GatewayAuthError: Raised when the credential is rejected.
        """

        attempts = self._config.report_retry_attempts
        last_error: GatewayError | None = None
        for retry_index in range(attempts):
            try:
                if isinstance(outcome, JobCompletedOutcome):
                    self._gateway.gateway_complete(job_id=job.id, result=outcome.result)
                    self._counters["jobs_completed"] += 1
                else:
                    self._gateway.gateway_fail(job_id=job.id, error=outcome.error)
                    self._counters["jobs_failed"] += 1
            except GatewayNetworkError as error:
                last_error = error
                if retry_index + 1 >= attempts:
                    break
                wait_seconds = self._config.report_backoff.strategy_calculate_retry_wait_seconds(retry_index)
                logger.warning(
                    "Report attempt=%s failed job_id=%s status=%s, retrying in %.2fs error=%s",
                    retry_index + 1,
                    job.id,
                    outcome.status,
                    wait_seconds,
                    error,
                )
                self._poller_wait(wait_seconds, interruptible=False)
                continue
            except GatewayAuthError:
                raise
            except GatewayError as error:
                last_error = error
                break

            logger.info(
                "Reported job job_id=%s job_type=%s status=%s timeline=%s",
                job.id,
                job.type,
                outcome.status,
                outcome.timeline,
            )
            return

        self._counters["outcomes_unreportable"] += 1
        logger.error(
            "Unreportable job outcome job_id=%s job_type=%s status=%s error_summary=%s attempts=%s last_error=%s; "
            "job remains claimed until the orchestrator times it out",
            job.id,
            job.type,
            outcome.status,
            outcome.error.summary_to_payload() if isinstance(outcome, JobFailedOutcome) else None,
            attempts,
            last_error,
        )

    def _poller_wait(self, seconds: float, interruptible: bool = True) -> bool:
        """Wait between retries.

        Args:
            seconds: Wait duration.
            interruptible: Whether a stop request ends the wait early.

        Returns:
            bool: True when stop was requested.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        if seconds <= 0:
            return self._stop_event.is_set()
        if interruptible:
            return self._stop_event.wait(seconds)
        time.sleep(seconds)
        return self._stop_event.is_set()
