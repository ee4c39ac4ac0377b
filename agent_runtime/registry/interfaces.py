"""Typed descriptors for discrete job handlers and continuous workers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Protocol

from agent_runtime.domain import Job

if TYPE_CHECKING:
    from agent_runtime.jobs.context import ExecutionContext
    from agent_runtime.workers.context import WorkerTickContext


PayloadValidator = Callable[[Any], Any]
JobHandlerCallable = Callable[[Job, "ExecutionContext"], Any]


class ContinuousWorker(Protocol):
    """Capability interface for one continuous worker instance."""

    def worker_tick(self, context: WorkerTickContext) -> None:
        """Run one unit of repeating work.

        Args:
            context: Tick context with worker-scoped logger and gateway.

        Returns:
            None: Ticks have no result value.

        Raises:
            Exception: Any error; the tick loop logs and contains it.
        """


@dataclass(frozen=True)
class JobHandlerDescriptor:
    """Registration for one discrete job type.

    Attributes:
        job_type: Job type string matched against polled jobs.
        payload_validator: Callable returning the typed payload or raising `PayloadValidationError`.
        handler: Callable invoked with the validated job and a fresh execution context.
    """

    job_type: str
    payload_validator: PayloadValidator
    handler: JobHandlerCallable


@dataclass(frozen=True)
class WorkerDescriptor:
    """Registration for one continuous worker.

    Attributes:
        name: Unique worker name, used as process argument and restart key.
        tick_interval_seconds: Pause between consecutive ticks.
        factory: Zero-argument callable building the worker instance inside its process.
    """

    name: str
    tick_interval_seconds: float
    factory: Callable[[], ContinuousWorker]
