"""Interruptible tick loop run inside one continuous-worker process."""

from __future__ import annotations

import logging
import threading
from typing import Any

from agent_runtime.adapters import OrchestratorGatewayPort
from agent_runtime.registry import WorkerDescriptor

from .context import WorkerTickContext

logger = logging.getLogger(__name__)


class WorkerProcessLoop:
    """Repeat one worker's tick until a stop request arrives.

    A failing tick is logged and contained; only `worker_stop` ends the loop,
    and it does so after the in-flight tick returns. The wait between ticks is
    cut short by a stop request.
    """

    def __init__(
        self,
        descriptor: WorkerDescriptor,
        gateway: OrchestratorGatewayPort | None = None,
        stop_event: threading.Event | None = None,
    ):
        """Initialize tick loop for one worker descriptor.

        Args:
            descriptor: Worker descriptor resolved from the registry.
            gateway: Optional orchestrator gateway exposed through the tick context.
            stop_event: Optional stop event, injected by tests.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when tick interval is not positive.
        """

        if descriptor.tick_interval_seconds <= 0:
            raise ValueError("descriptor.tick_interval_seconds must be > 0")

        self._descriptor = descriptor
        self._gateway = gateway
        self._stop_event = stop_event or threading.Event()
        self._worker_logger = logging.getLogger(f"agent_runtime.worker.{descriptor.name}")
        self._tick_count = 0
        self._tick_failure_count = 0

    @property
    def running(self) -> bool:
        return not self._stop_event.is_set()

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def tick_failure_count(self) -> int:
        return self._tick_failure_count

    def worker_run(self) -> None:
        """Build the worker instance and tick until stopped.

        Returns:
            None: Returns once stop was requested and the last tick finished.

        Raises:
            Exception: Raised when the worker factory fails; ticks never propagate errors.
        """

        worker_name = self._descriptor.name
        worker = self._descriptor.factory()
        logger.info(
            "Continuous worker started name=%s tick_interval_seconds=%s",
            worker_name,
            self._descriptor.tick_interval_seconds,
        )

        while not self._stop_event.is_set():
            self._tick_count += 1
            context = WorkerTickContext(
                worker_name=worker_name,
                tick_index=self._tick_count,
                logger=self._worker_logger,
                gateway=self._gateway,
            )
            try:
                worker.worker_tick(context)
            except Exception:  # pylint: disable=broad-exception-caught
                self._tick_failure_count += 1
                logger.error(
                    "Tick failed name=%s tick_index=%s failures=%s",
                    worker_name,
                    self._tick_count,
                    self._tick_failure_count,
                    exc_info=True,
                )

            if self._stop_event.is_set():
                break
            self._stop_event.wait(self._descriptor.tick_interval_seconds)

        logger.info("Continuous worker stopped name=%s ticks=%s", worker_name, self._tick_count)

    def worker_stop(self, *_signal_args: Any) -> None:
        """Request loop exit. Usable directly as a signal handler."""

        self._stop_event.set()

    def worker_status_snapshot(self) -> dict[str, Any]:
        return {
            "name": self._descriptor.name,
            "running": self.running,
            "tick_count": self._tick_count,
            "tick_failure_count": self._tick_failure_count,
        }
