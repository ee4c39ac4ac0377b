"""Validate-execute pipeline for one discrete job."""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone

from agent_runtime.adapters import OrchestratorGatewayPort
from agent_runtime.domain import (
    HANDLER_ERROR_KIND,
    VALIDATION_ERROR_KIND,
    Job,
    JobCompletedOutcome,
    JobErrorSummary,
    JobFailedOutcome,
    JobOutcome,
    ResultSerializationError,
    domain_build_stage_event,
    domain_to_json_compatible,
)
from agent_runtime.registry import JobHandlerDescriptor, PayloadValidationError

from .context import job_build_execution_context
from .interfaces import JobExecutorPort


class JobExecutor(JobExecutorPort):
    """Run one job against its handler descriptor and capture the outcome.

    The executor performs no retries and no orchestrator writes; the poller
    reports the returned outcome.
    """

    def __init__(self, gateway: OrchestratorGatewayPort):
        """Initialize executor dependencies.

        Args:
            gateway: Orchestrator gateway wrapped into each job's restricted context.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when gateway is None.
        """

        if gateway is None:
            raise ValueError("gateway must not be None")

        self._gateway = gateway

    def job_execute(self, job: Job, descriptor: JobHandlerDescriptor) -> JobOutcome:
        """Validate payload, invoke handler and wrap the result.

        Args:
            job: Claimed job.
            descriptor: Resolved handler descriptor for `job.type`.

        Returns:
            JobOutcome: Completed outcome with the unmodified handler return value,
            or failed outcome with `ValidationError`/`HandlerError` summary.

        Raises:
            ValueError: Raised when descriptor does not match the job type.
        """

        if descriptor.job_type != job.type:
            raise ValueError(f"descriptor job_type={descriptor.job_type} does not match job type={job.type}")

        context = job_build_execution_context(job=job, gateway=self._gateway)
        timeline: list[dict[str, object]] = []

        validate_started_at = datetime.now(timezone.utc)
        try:
            validated_payload = descriptor.payload_validator(job.payload)
        except PayloadValidationError as error:
            context.logger.warning("Payload validation failed: %s", error)
            timeline.append(
                domain_build_stage_event(
                    stage="validate",
                    status="failed",
                    details={"issues": error.issues},
                    started_at_utc=validate_started_at,
                )
            )
            return JobFailedOutcome(
                error=JobErrorSummary(kind=VALIDATION_ERROR_KIND, message=str(error)),
                timeline=timeline,
            )
        except Exception as error:  # pylint: disable=broad-exception-caught
            context.logger.error("Payload validator raised unexpectedly", exc_info=True)
            timeline.append(
                domain_build_stage_event(stage="validate", status="failed", started_at_utc=validate_started_at)
            )
            return JobFailedOutcome(
                error=JobErrorSummary(
                    kind=VALIDATION_ERROR_KIND,
                    message=f"payload validator raised {type(error).__name__}: {error}",
                ),
                timeline=timeline,
            )
        timeline.append(domain_build_stage_event(stage="validate", status="completed", started_at_utc=validate_started_at))

        validated_job = dataclasses.replace(job, payload=validated_payload)
        execute_started_at = datetime.now(timezone.utc)
        context.logger.info("Executing job")
        try:
            result = descriptor.handler(validated_job, context)
        except Exception as error:  # pylint: disable=broad-exception-caught
            context.logger.error("Job handler raised %s", type(error).__name__, exc_info=True)
            timeline.append(
                domain_build_stage_event(
                    stage="execute",
                    status="failed",
                    details={"error_type": type(error).__name__},
                    started_at_utc=execute_started_at,
                )
            )
            return JobFailedOutcome(
                error=JobErrorSummary(kind=HANDLER_ERROR_KIND, message=f"{type(error).__name__}: {error}"),
                timeline=timeline,
            )

        try:
            domain_to_json_compatible(result)
        except ResultSerializationError as error:
            context.logger.error("Job handler returned unserializable result type=%s", type(result).__name__)
            timeline.append(
                domain_build_stage_event(
                    stage="execute",
                    status="failed",
                    details={"error_type": "ResultSerializationError"},
                    started_at_utc=execute_started_at,
                )
            )
            return JobFailedOutcome(
                error=JobErrorSummary(kind=HANDLER_ERROR_KIND, message=f"handler result {error}"),
                timeline=timeline,
            )

        timeline.append(domain_build_stage_event(stage="execute", status="completed", started_at_utc=execute_started_at))
        context.logger.info("Job handler completed")
        return JobCompletedOutcome(result=result, timeline=timeline)
