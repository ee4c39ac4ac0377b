"""Handler registry package for job types and continuous workers."""

from .interfaces import ContinuousWorker, JobHandlerDescriptor, PayloadValidator, WorkerDescriptor
from .registry import HandlerRegistry, RegistryConfigurationError, registry_load_from_module
from .validation import (
    PayloadValidationError,
    registry_passthrough_payload_validator,
    registry_pydantic_payload_validator,
)

__all__ = [
    "ContinuousWorker",
    "HandlerRegistry",
    "JobHandlerDescriptor",
    "PayloadValidationError",
    "PayloadValidator",
    "RegistryConfigurationError",
    "WorkerDescriptor",
    "registry_load_from_module",
    "registry_passthrough_payload_validator",
    "registry_pydantic_payload_validator",
]
