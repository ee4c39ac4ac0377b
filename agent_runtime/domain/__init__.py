"""Domain models used across runtime layer boundaries."""

from .models import (
    CAPABILITY_MISMATCH_ERROR_KIND,
    HANDLER_ERROR_KIND,
    VALIDATION_ERROR_KIND,
    ChildJobRequest,
    Job,
    JobCompletedOutcome,
    JobErrorSummary,
    JobFailedOutcome,
    JobOutcome,
)
from .retry import RetryBackoffStrategy
from .serialization import ResultSerializationError, domain_to_json_compatible
from .timeline import domain_build_stage_event

__all__ = [
    "CAPABILITY_MISMATCH_ERROR_KIND",
    "HANDLER_ERROR_KIND",
    "VALIDATION_ERROR_KIND",
    "ChildJobRequest",
    "Job",
    "JobCompletedOutcome",
    "JobErrorSummary",
    "JobFailedOutcome",
    "JobOutcome",
    "ResultSerializationError",
    "RetryBackoffStrategy",
    "domain_build_stage_event",
    "domain_to_json_compatible",
]
