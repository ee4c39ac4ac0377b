"""Typed domain models shared across runtime layers.

Jobs are owned by the orchestrator. The runtime holds a transient read-only
copy for the duration of one execution and reports one outcome back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Final, Literal, Union

VALIDATION_ERROR_KIND: Final[str] = "ValidationError"
HANDLER_ERROR_KIND: Final[str] = "HandlerError"
CAPABILITY_MISMATCH_ERROR_KIND: Final[str] = "CapabilityMismatch"


@dataclass(frozen=True)
class Job:
    """One discrete unit of work fetched from the orchestrator.

    Attributes:
        id: Orchestrator job identifier.
        type: Job type used for handler resolution.
        payload: Opaque structured payload, replaced by the validated value before handler invocation.
        status: Orchestrator-side status at fetch time.
        created_at: Orchestrator creation timestamp.
        result: Stored result, present only for already-terminal jobs.
        error: Stored error, present only for already-terminal jobs.
        user_id: Optional owning user identifier.
        parent_job_id: Optional parent job identifier for child jobs.
    """

    id: str
    type: str
    payload: Any
    status: str
    created_at: datetime | None = None
    result: Any = None
    error: Any = None
    user_id: str | None = None
    parent_job_id: str | None = None


@dataclass(frozen=True)
class JobErrorSummary:
    """Serializable error summary sent upstream when a job fails.

    Stack traces are never part of the summary; they stay in local logs.

    Attributes:
        kind: Error taxonomy label.
        message: Human-readable error message.
    """

    kind: str
    message: str

    def summary_to_payload(self) -> dict[str, str]:
        """Return wire-ready error payload.

        Returns:
            dict[str, str]: Mapping with `kind` and `message` keys.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        return {"kind": self.kind, "message": self.message}


@dataclass(frozen=True)
class JobCompletedOutcome:
    """Outcome for a handler that returned normally.

    Attributes:
        result: Handler return value, passed through unmodified.
        timeline: Structured execution stage events.
    """

    result: Any
    timeline: list[dict[str, object]] = field(default_factory=list, compare=False)
    status: Literal["completed"] = "completed"


@dataclass(frozen=True)
class JobFailedOutcome:
    """Outcome for a job that failed validation, execution or resolution.

    Attributes:
        error: Serializable error summary.
        retryable: Always False; retry policy belongs to the orchestrator.
        timeline: Structured execution stage events.
    """

    error: JobErrorSummary
    retryable: bool = False
    timeline: list[dict[str, object]] = field(default_factory=list, compare=False)
    status: Literal["failed"] = "failed"


JobOutcome = Union[JobCompletedOutcome, JobFailedOutcome]


@dataclass(frozen=True)
class ChildJobRequest:
    """Request contract for creating a job from inside a running handler.

    Attributes:
        type: Job type of the child job.
        payload: Child job payload.
        parent_job_id: Identifier of the job creating the child.
    """

    type: str
    payload: Any
    parent_job_id: str | None = None
