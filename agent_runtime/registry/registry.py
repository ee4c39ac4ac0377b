"""Read-only handler registry with fail-fast duplicate detection."""

from __future__ import annotations

import importlib
import logging
from typing import Iterable

from .interfaces import JobHandlerDescriptor, WorkerDescriptor

logger = logging.getLogger(__name__)


class RegistryConfigurationError(RuntimeError):
    """Raised when handler registrations are inconsistent. Aborts startup."""


class HandlerRegistry:
    """Static mapping of job types to handlers and worker names to factories."""

    def __init__(
        self,
        job_handlers: Iterable[JobHandlerDescriptor] = (),
        workers: Iterable[WorkerDescriptor] = (),
    ):
        """Build registry and reject duplicate or malformed registrations.

        Args:
            job_handlers: Discrete job handler descriptors.
            workers: Continuous worker descriptors.

        Returns:
            None: Initializer does not return a value.

        Raises:
            RegistryConfigurationError: Raised for duplicate, blank or whitespace-padded keys and invalid intervals.
        """

        self._job_handlers: dict[str, JobHandlerDescriptor] = {}
        self._workers: dict[str, WorkerDescriptor] = {}

        for descriptor in job_handlers:
            job_type = descriptor.job_type
            if not job_type.strip():
                raise RegistryConfigurationError("job handler registered with blank job_type")
            if job_type != job_type.strip():
                raise RegistryConfigurationError(f"job_type={job_type!r} has surrounding whitespace")
            if job_type in self._job_handlers:
                raise RegistryConfigurationError(f"duplicate job handler registration for job_type={job_type}")
            if not callable(descriptor.handler) or not callable(descriptor.payload_validator):
                raise RegistryConfigurationError(f"job handler for job_type={job_type} is not callable")
            self._job_handlers[job_type] = descriptor

        for descriptor in workers:
            worker_name = descriptor.name
            if not worker_name.strip():
                raise RegistryConfigurationError("continuous worker registered with blank name")
            if worker_name != worker_name.strip():
                raise RegistryConfigurationError(f"continuous worker name={worker_name!r} has surrounding whitespace")
            if worker_name in self._workers:
                raise RegistryConfigurationError(f"duplicate continuous worker registration for name={worker_name}")
            if descriptor.tick_interval_seconds <= 0:
                raise RegistryConfigurationError(f"continuous worker name={worker_name} needs tick_interval_seconds > 0")
            if not callable(descriptor.factory):
                raise RegistryConfigurationError(f"continuous worker name={worker_name} factory is not callable")
            self._workers[worker_name] = descriptor

    def registry_resolve(self, job_type: str) -> JobHandlerDescriptor | None:
        """Resolve handler descriptor for an exact job type.

        Args:
            job_type: Job type string from a polled job.

        Returns:
            JobHandlerDescriptor | None: Registered descriptor, or None when not found.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        return self._job_handlers.get(job_type)

    def registry_list_capabilities(self) -> frozenset[str]:
        """Return all registered job types.

        Returns:
            frozenset[str]: Registered job types.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        return frozenset(self._job_handlers)

    def registry_list_workers(self) -> tuple[WorkerDescriptor, ...]:
        """Return continuous worker descriptors in registration order.

        Returns:
            tuple[WorkerDescriptor, ...]: Registered worker descriptors.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        return tuple(self._workers.values())

    def registry_get_worker(self, name: str) -> WorkerDescriptor | None:
        """Return worker descriptor by name, or None when not registered."""

        return self._workers.get(name)


def registry_load_from_module(module_path: str) -> HandlerRegistry:
    """Import a generated registration module and build the registry.

    The module must expose `JOB_HANDLERS` and/or `CONTINUOUS_WORKERS`
    sequences of descriptors.

    Args:
        module_path: Dotted import path of the registration module.

    Returns:
        HandlerRegistry: Registry built from module registrations.

    Raises:
        RegistryConfigurationError: Raised when module cannot be imported or exposes no registrations.
    """

    normalized_module_path = module_path.strip()
    if not normalized_module_path:
        raise RegistryConfigurationError("registry module path must not be blank")

    try:
        registration_module = importlib.import_module(normalized_module_path)
    except ImportError as error:
        raise RegistryConfigurationError(f"registry module import failed: module={normalized_module_path}") from error

    job_handlers = tuple(getattr(registration_module, "JOB_HANDLERS", ()))
    workers = tuple(getattr(registration_module, "CONTINUOUS_WORKERS", ()))
    if not job_handlers and not workers:
        raise RegistryConfigurationError(
            f"registry module={normalized_module_path} exposes neither JOB_HANDLERS nor CONTINUOUS_WORKERS"
        )

    registry = HandlerRegistry(job_handlers=job_handlers, workers=workers)
    logger.info(
        "Loaded handler registry module=%s job_types=%s workers=%s",
        normalized_module_path,
        sorted(registry.registry_list_capabilities()),
        [descriptor.name for descriptor in registry.registry_list_workers()],
    )
    return registry
