"""Agent supervisor keeping one live process per continuous worker."""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Sequence

from agent_runtime.registry import WorkerDescriptor

from .interfaces import ProcessHandle, ProcessLauncherPort

logger = logging.getLogger(__name__)


class SupervisedProcessState(str, Enum):
    """Lifecycle states of one supervised worker process."""

    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    EXITED = "exited"


class ProcessExitError(RuntimeError):
    """Unexpected exit of a supervised worker process. Triggers restart, never raised.

    Attributes:
        worker_name: Exited worker name.
        exit_code: Process exit code, negative for signal terminations.
        restart_count: Restarts performed before this exit.
    """

    def __init__(self, worker_name: str, exit_code: int | None, restart_count: int):
        super().__init__(
            f"worker process exited unexpectedly name={worker_name} exit_code={exit_code} "
            f"restart_count={restart_count}"
        )
        self.worker_name = worker_name
        self.exit_code = exit_code
        self.restart_count = restart_count


@dataclass(frozen=True)
class SupervisedProcessRecord:
    """Immutable snapshot of one supervised worker, replaced on every transition.

    Attributes:
        worker_name: Worker descriptor name.
        pid: OS process id of the current or last process.
        restart_count: Respawns performed for this worker.
        last_started_at: UTC time of the last spawn.
        state: Current lifecycle state.
        exit_code: Exit code of the last exited process.
    """

    worker_name: str
    pid: int | None
    restart_count: int
    last_started_at: datetime | None
    state: SupervisedProcessState
    exit_code: int | None = None

    def record_to_payload(self) -> dict[str, Any]:
        return {
            "worker_name": self.worker_name,
            "pid": self.pid,
            "restart_count": self.restart_count,
            "last_started_at": self.last_started_at.isoformat() if self.last_started_at else None,
            "state": self.state.value,
            "exit_code": self.exit_code,
        }


@dataclass(frozen=True)
class AgentSupervisorConfig:
    """Configuration values for worker supervision.

    Attributes:
        restart_delay_seconds: Fixed delay between an unexpected exit and the respawn.
        shutdown_grace_seconds: Time granted to children for voluntary exit on shutdown.
        monitor_interval_seconds: Interval between exit checks on the monitor thread.
        max_restarts: Optional restart ceiling per worker. None keeps restarting forever.
        crash_loop_threshold: Restart count from which respawns are logged as a crash loop.
    """

    restart_delay_seconds: float = 5.0
    shutdown_grace_seconds: float = 10.0
    monitor_interval_seconds: float = 0.5
    max_restarts: int | None = None
    crash_loop_threshold: int = 5


class AgentSupervisor:
    """Spawn, monitor, restart and terminate continuous worker processes.

    The supervisor shares no memory with its children; coordination happens
    only through process signals and exit codes.
    """

    _KILL_JOIN_SECONDS = 5.0

    def __init__(
        self,
        launcher: ProcessLauncherPort,
        workers: Sequence[WorkerDescriptor],
        config: AgentSupervisorConfig | None = None,
        monotonic_provider: Callable[[], float] | None = None,
    ):
        """Initialize supervisor.

        Args:
            launcher: Process launcher used for every spawn.
            workers: Worker descriptors to supervise.
            config: Supervision configuration.
            monotonic_provider: Optional monotonic clock, injected by tests.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies or config values are invalid.
        """

        resolved_config = config or AgentSupervisorConfig()
        if launcher is None:
            raise ValueError("launcher must not be None")
        if resolved_config.restart_delay_seconds < 0:
            raise ValueError("config.restart_delay_seconds must be >= 0")
        if resolved_config.shutdown_grace_seconds < 0:
            raise ValueError("config.shutdown_grace_seconds must be >= 0")
        if resolved_config.monitor_interval_seconds <= 0:
            raise ValueError("config.monitor_interval_seconds must be > 0")
        if resolved_config.max_restarts is not None and resolved_config.max_restarts < 0:
            raise ValueError("config.max_restarts must be >= 0")

        worker_names = [descriptor.name for descriptor in workers]
        if len(set(worker_names)) != len(worker_names):
            raise ValueError("worker names must be unique")

        self._launcher = launcher
        self._worker_names = tuple(worker_names)
        self._config = resolved_config
        self._monotonic = monotonic_provider or time.monotonic
        self._lock = threading.RLock()
        self._shutdown_once = threading.Lock()
        self._shutdown_event = threading.Event()
        self._started = False
        self._monitor_thread: threading.Thread | None = None
        self._records: dict[str, SupervisedProcessRecord] = {}
        self._handles: dict[str, ProcessHandle] = {}
        self._pending_restarts: dict[str, float] = {}
        self._last_exit_errors: dict[str, ProcessExitError] = {}

    @property
    def shutting_down(self) -> bool:
        return self._shutdown_event.is_set()

    def supervisor_start(self, start_monitor: bool = True) -> None:
        """Spawn one process per worker descriptor and start monitoring.

        Args:
            start_monitor: Whether to run the background monitor thread. Tests drive
                `supervisor_reconcile` directly instead.

        Returns:
            None: Spawns processes as side effect.

        Raises:
            RuntimeError: Raised when called after shutdown.
        """

        with self._lock:
            if self._shutdown_event.is_set():
                raise RuntimeError("supervisor already shut down")
            if self._started:
                return
            self._started = True

            for worker_name in self._worker_names:
                self._supervisor_spawn(worker_name=worker_name, restart_count=0)

        if start_monitor:
            self._monitor_thread = threading.Thread(
                target=self._supervisor_monitor_loop,
                name="agent-supervisor-monitor",
                daemon=True,
            )
            self._monitor_thread.start()
        logger.info("Agent supervisor started workers=%s", list(self._worker_names))

    def supervisor_reconcile(self, now: float | None = None) -> None:
        """Run one monitoring step: detect exits and perform due restarts.

        Args:
            now: Optional monotonic timestamp; the injected clock is used when omitted.

        Returns:
            None: Updates records and respawns as side effect.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        current_time = self._monotonic() if now is None else now
        with self._lock:
            if self._shutdown_event.is_set():
                return

            for worker_name, handle in list(self._handles.items()):
                if worker_name in self._pending_restarts or handle.handle_is_alive():
                    continue
                record = self._records[worker_name]
                if record.state == SupervisedProcessState.EXITED:
                    continue
                self._supervisor_handle_exit(worker_name=worker_name, handle=handle, now=current_time)

            for worker_name, restart_due_at in list(self._pending_restarts.items()):
                if restart_due_at > current_time:
                    continue
                del self._pending_restarts[worker_name]
                self._supervisor_spawn(
                    worker_name=worker_name,
                    restart_count=self._records[worker_name].restart_count + 1,
                )

    def supervisor_shutdown(self) -> None:
        """Stop every child gracefully, force-kill stragglers, then return.

        Idempotent: any call after the first returns immediately.

        Returns:
            None: Terminates processes as side effect.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        if not self._shutdown_once.acquire(blocking=False):
            return

        with self._lock:
            self._shutdown_event.set()
            self._pending_restarts.clear()
            live_handles = {
                worker_name: handle for worker_name, handle in self._handles.items() if handle.handle_is_alive()
            }
            logger.info("Agent supervisor shutting down live_workers=%s", sorted(live_handles))
            for worker_name, handle in live_handles.items():
                self._supervisor_replace_record(worker_name, state=SupervisedProcessState.STOPPING)
                try:
                    handle.handle_request_stop()
                except OSError as error:
                    logger.warning("Graceful stop signal failed name=%s error=%s", worker_name, error)

        deadline = self._monotonic() + self._config.shutdown_grace_seconds
        for handle in live_handles.values():
            handle.handle_join(max(0.0, deadline - self._monotonic()))

        for worker_name, handle in live_handles.items():
            if not handle.handle_is_alive():
                continue
            logger.warning(
                "Worker did not exit within grace period name=%s grace_seconds=%s; force terminating",
                worker_name,
                self._config.shutdown_grace_seconds,
            )
            try:
                handle.handle_kill()
            except OSError as error:
                logger.error("Force termination failed name=%s error=%s", worker_name, error)
            handle.handle_join(self._KILL_JOIN_SECONDS)

        with self._lock:
            for worker_name, handle in self._handles.items():
                self._supervisor_replace_record(
                    worker_name,
                    state=SupervisedProcessState.EXITED,
                    exit_code=handle.handle_exit_code(),
                )

        monitor_thread = self._monitor_thread
        if monitor_thread is not None and monitor_thread is not threading.current_thread():
            monitor_thread.join(timeout=self._config.monitor_interval_seconds * 4)
        logger.info("Agent supervisor shutdown complete")

    def supervisor_records(self) -> dict[str, SupervisedProcessRecord]:
        """Return a copy of the current process records keyed by worker name."""

        with self._lock:
            return dict(self._records)

    def supervisor_status_snapshot(self) -> dict[str, Any]:
        """Return diagnostics for the status API.

        Returns:
            dict[str, Any]: Shutdown flag, records and pending restarts.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        with self._lock:
            return {
                "shutting_down": self._shutdown_event.is_set(),
                "workers": [self._records[name].record_to_payload() for name in self._worker_names if name in self._records],
                "pending_restarts": sorted(self._pending_restarts),
                "last_exit_errors": {name: str(error) for name, error in self._last_exit_errors.items()},
            }

    def _supervisor_monitor_loop(self) -> None:
        while not self._shutdown_event.wait(self._config.monitor_interval_seconds):
            try:
                self.supervisor_reconcile()
            except Exception:  # pylint: disable=broad-exception-caught
                logger.error("Supervisor monitoring step failed", exc_info=True)

    def _supervisor_spawn(self, worker_name: str, restart_count: int) -> None:
        """Spawn one worker process unless a live one already exists.

        Args:
            worker_name: Worker descriptor name.
            restart_count: Restart counter for the new record.

        Returns:
            None: Updates records as side effect.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        existing_handle = self._handles.get(worker_name)
        if existing_handle is not None and existing_handle.handle_is_alive():
            logger.error("Refusing to spawn second live process name=%s pid=%s", worker_name, existing_handle.pid)
            return

        started_at = datetime.now(timezone.utc)
        self._records[worker_name] = SupervisedProcessRecord(
            worker_name=worker_name,
            pid=None,
            restart_count=restart_count,
            last_started_at=started_at,
            state=SupervisedProcessState.STARTING,
        )
        try:
            handle = self._launcher.launcher_spawn(worker_name)
        except OSError as error:
            logger.error("Worker spawn failed name=%s restart_count=%s error=%s", worker_name, restart_count, error)
            self._supervisor_replace_record(worker_name, state=SupervisedProcessState.EXITED)
            self._supervisor_schedule_restart(worker_name=worker_name, now=self._monotonic())
            return

        self._handles[worker_name] = handle
        self._supervisor_replace_record(worker_name, pid=handle.pid, state=SupervisedProcessState.RUNNING)
        if restart_count == 0:
            logger.info("Spawned worker name=%s pid=%s", worker_name, handle.pid)
        elif restart_count >= self._config.crash_loop_threshold:
            logger.error("Worker crash loop: respawned name=%s pid=%s restart_count=%s", worker_name, handle.pid, restart_count)
        else:
            logger.warning("Respawned worker name=%s pid=%s restart_count=%s", worker_name, handle.pid, restart_count)

    def _supervisor_handle_exit(self, worker_name: str, handle: ProcessHandle, now: float) -> None:
        record = self._records[worker_name]
        exit_error = ProcessExitError(
            worker_name=worker_name,
            exit_code=handle.handle_exit_code(),
            restart_count=record.restart_count,
        )
        self._last_exit_errors[worker_name] = exit_error
        self._supervisor_replace_record(worker_name, state=SupervisedProcessState.EXITED, exit_code=exit_error.exit_code)
        logger.error("%s; restarting in %.2fs", exit_error, self._config.restart_delay_seconds)
        self._supervisor_schedule_restart(worker_name=worker_name, now=now)

    def _supervisor_schedule_restart(self, worker_name: str, now: float) -> None:
        max_restarts = self._config.max_restarts
        restart_count = self._records[worker_name].restart_count
        if max_restarts is not None and restart_count >= max_restarts:
            logger.critical(
                "Worker exceeded restart ceiling name=%s max_restarts=%s; not restarting",
                worker_name,
                max_restarts,
            )
            return
        self._pending_restarts[worker_name] = now + self._config.restart_delay_seconds

    def _supervisor_replace_record(self, worker_name: str, **changes: Any) -> None:
        self._records[worker_name] = dataclasses.replace(self._records[worker_name], **changes)
