"""Regression tests for agent supervisor spawn, restart and shutdown behavior."""

from __future__ import annotations

import time
from pathlib import Path

import pytest

from agent_runtime.registry import WorkerDescriptor
from agent_runtime.supervisor import (
    AgentSupervisor,
    AgentSupervisorConfig,
    MultiprocessingProcessLauncher,
    SupervisedProcessState,
)


class _FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class _FakeProcessHandle:
    """Process handle double with controllable liveness."""

    def __init__(self, pid: int, exits_on_stop: bool = True):
        """Initialize handle state.

        Args:
            pid: Fake OS process id.
            exits_on_stop: Whether a graceful stop request ends the process.

        Returns:
            None: Initializer does not return values.

        Raises:
            RuntimeError: This double does not raise runtime errors.
        """

        self._pid = pid
        self.exits_on_stop = exits_on_stop
        self.alive = True
        self.exit_code: int | None = None
        self.stop_requests = 0
        self.kill_calls = 0
        self.join_timeouts: list[float | None] = []

    @property
    def pid(self) -> int:
        return self._pid

    def handle_is_alive(self) -> bool:
        return self.alive

    def handle_exit_code(self) -> int | None:
        return self.exit_code

    def handle_request_stop(self) -> None:
        self.stop_requests += 1
        if self.exits_on_stop:
            self.crash(exit_code=0)

    def handle_kill(self) -> None:
        self.kill_calls += 1
        self.crash(exit_code=-9)

    def handle_join(self, timeout_seconds: float | None = None) -> None:
        self.join_timeouts.append(timeout_seconds)

    def crash(self, exit_code: int = 1) -> None:
        self.alive = False
        self.exit_code = exit_code


class _FakeLauncher:
    """Launcher double recording spawned handles."""

    def __init__(self, exits_on_stop: bool = True):
        self.exits_on_stop = exits_on_stop
        self.spawned: list[tuple[str, _FakeProcessHandle]] = []

    def launcher_spawn(self, worker_name: str) -> _FakeProcessHandle:
        handle = _FakeProcessHandle(pid=1000 + len(self.spawned), exits_on_stop=self.exits_on_stop)
        self.spawned.append((worker_name, handle))
        return handle


class _NoopWorker:
    def worker_tick(self, context) -> None:
        _ = context


def _workers(*names: str) -> list[WorkerDescriptor]:
    return [WorkerDescriptor(name=name, tick_interval_seconds=5.0, factory=_NoopWorker) for name in names]


def _build_supervisor(
    launcher: _FakeLauncher,
    clock: _FakeClock,
    names: tuple[str, ...] = ("watcher",),
    **config_values,
) -> AgentSupervisor:
    config = AgentSupervisorConfig(**{"restart_delay_seconds": 1.0, "shutdown_grace_seconds": 2.0, **config_values})
    return AgentSupervisor(launcher=launcher, workers=_workers(*names), config=config, monotonic_provider=clock)


def test_supervisor_start_spawns_one_process_per_worker() -> None:
    """Spawn exactly one process per descriptor, even when started twice.

    Returns:
        None: Assertions validate initial spawn.

    Raises:
        AssertionError: Raised when spawns are missing or duplicated.
    """

    launcher = _FakeLauncher()
    supervisor = _build_supervisor(launcher, _FakeClock(), names=("watcher", "email"))

    supervisor.supervisor_start(start_monitor=False)
    supervisor.supervisor_start(start_monitor=False)

    assert [name for name, _ in launcher.spawned] == ["watcher", "email"]
    records = supervisor.supervisor_records()
    assert records["watcher"].state == SupervisedProcessState.RUNNING
    assert records["watcher"].pid == 1000
    assert records["email"].restart_count == 0


def test_supervisor_restarts_exited_worker_after_delay() -> None:
    """Respawn a crashed worker only once the restart delay elapsed.

    Returns:
        None: Assertions validate restart timing and bookkeeping.

    Raises:
        AssertionError: Raised when restart is early, missing or duplicated.
    """

    launcher = _FakeLauncher()
    clock = _FakeClock()
    supervisor = _build_supervisor(launcher, clock)
    supervisor.supervisor_start(start_monitor=False)

    clock.now = 10.0
    launcher.spawned[0][1].crash(exit_code=1)
    supervisor.supervisor_reconcile()

    record = supervisor.supervisor_records()["watcher"]
    assert record.state == SupervisedProcessState.EXITED
    assert record.exit_code == 1
    assert len(launcher.spawned) == 1
    assert "exit_code=1" in supervisor.supervisor_status_snapshot()["last_exit_errors"]["watcher"]

    clock.now = 10.5
    supervisor.supervisor_reconcile()
    assert len(launcher.spawned) == 1

    clock.now = 11.0
    supervisor.supervisor_reconcile()
    supervisor.supervisor_reconcile()

    assert len(launcher.spawned) == 2
    record = supervisor.supervisor_records()["watcher"]
    assert record.restart_count == 1
    assert record.state == SupervisedProcessState.RUNNING
    assert record.pid == 1001


def test_supervisor_respects_restart_ceiling() -> None:
    """Stop respawning a worker after the configured restart ceiling.

    Returns:
        None: Assertions validate restart ceiling.

    Raises:
        AssertionError: Raised when restarts exceed the ceiling.
    """

    launcher = _FakeLauncher()
    clock = _FakeClock()
    supervisor = _build_supervisor(launcher, clock, max_restarts=1)
    supervisor.supervisor_start(start_monitor=False)

    launcher.spawned[0][1].crash()
    supervisor.supervisor_reconcile()
    clock.now = 5.0
    supervisor.supervisor_reconcile()
    assert len(launcher.spawned) == 2

    launcher.spawned[1][1].crash()
    supervisor.supervisor_reconcile()
    clock.now = 50.0
    supervisor.supervisor_reconcile()

    assert len(launcher.spawned) == 2
    assert supervisor.supervisor_records()["watcher"].state == SupervisedProcessState.EXITED
    assert supervisor.supervisor_status_snapshot()["pending_restarts"] == []


def test_supervisor_shutdown_is_idempotent() -> None:
    """Send one stop signal per child regardless of repeated shutdown calls.

    Returns:
        None: Assertions validate shutdown idempotence.

    Raises:
        AssertionError: Raised when stop signals are duplicated.
    """

    launcher = _FakeLauncher()
    supervisor = _build_supervisor(launcher, _FakeClock(), names=("watcher", "email"))
    supervisor.supervisor_start(start_monitor=False)

    supervisor.supervisor_shutdown()
    supervisor.supervisor_shutdown()

    assert [handle.stop_requests for _, handle in launcher.spawned] == [1, 1]
    assert [handle.kill_calls for _, handle in launcher.spawned] == [0, 0]
    assert all(
        record.state == SupervisedProcessState.EXITED and record.exit_code == 0
        for record in supervisor.supervisor_records().values()
    )
    assert supervisor.supervisor_status_snapshot()["shutting_down"] is True


def test_supervisor_shutdown_force_kills_stragglers_after_grace() -> None:
    """Force-terminate children that ignore the graceful stop request.

    Returns:
        None: Assertions validate grace period and force kill.

    Raises:
        AssertionError: Raised when stragglers are left running.
    """

    launcher = _FakeLauncher(exits_on_stop=False)
    supervisor = _build_supervisor(launcher, _FakeClock(), shutdown_grace_seconds=3.0)
    supervisor.supervisor_start(start_monitor=False)

    supervisor.supervisor_shutdown()

    handle = launcher.spawned[0][1]
    assert handle.stop_requests == 1
    assert handle.kill_calls == 1
    assert handle.join_timeouts[0] == 3.0
    assert handle.alive is False
    assert supervisor.supervisor_records()["watcher"].exit_code == -9


def test_supervisor_never_restarts_during_shutdown() -> None:
    """Ignore exits observed after shutdown started.

    Returns:
        None: Assertions validate restart suppression on shutdown.

    Raises:
        AssertionError: Raised when a worker is respawned during shutdown.
    """

    launcher = _FakeLauncher()
    clock = _FakeClock()
    supervisor = _build_supervisor(launcher, clock)
    supervisor.supervisor_start(start_monitor=False)

    launcher.spawned[0][1].crash()
    supervisor.supervisor_reconcile()
    supervisor.supervisor_shutdown()
    clock.now = 100.0
    supervisor.supervisor_reconcile()

    assert len(launcher.spawned) == 1


def test_supervisor_retries_failed_spawn() -> None:
    """Schedule a respawn when the OS refuses to start a process.

    Returns:
        None: Assertions validate spawn failure handling.

    Raises:
        AssertionError: Raised when spawn failure stops supervision.
    """

    class _FlakyLauncher(_FakeLauncher):
        def __init__(self) -> None:
            super().__init__()
            self.failures_left = 1

        def launcher_spawn(self, worker_name: str) -> _FakeProcessHandle:
            if self.failures_left:
                self.failures_left -= 1
                raise OSError("resource temporarily unavailable")
            return super().launcher_spawn(worker_name)

    launcher = _FlakyLauncher()
    clock = _FakeClock()
    supervisor = _build_supervisor(launcher, clock)
    supervisor.supervisor_start(start_monitor=False)

    assert supervisor.supervisor_records()["watcher"].state == SupervisedProcessState.EXITED

    clock.now = 1.0
    supervisor.supervisor_reconcile()

    assert len(launcher.spawned) == 1
    assert supervisor.supervisor_records()["watcher"].state == SupervisedProcessState.RUNNING


def test_supervisor_monitor_thread_restarts_workers() -> None:
    """Detect exits and respawn from the background monitor thread.

    Returns:
        None: Assertions validate monitor-driven restarts.

    Raises:
        AssertionError: Raised when the monitor thread does not restart workers.
    """

    launcher = _FakeLauncher()
    supervisor = AgentSupervisor(
        launcher=launcher,
        workers=_workers("watcher"),
        config=AgentSupervisorConfig(restart_delay_seconds=0.0, monitor_interval_seconds=0.01),
    )
    supervisor.supervisor_start()
    try:
        launcher.spawned[0][1].crash()
        deadline = time.monotonic() + 5.0
        while len(launcher.spawned) < 2 and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        supervisor.supervisor_shutdown()

    assert len(launcher.spawned) == 2
    assert launcher.spawned[1][1].stop_requests == 1


_TICK_RECORDER_REGISTRY_SOURCE = '''
import os
from pathlib import Path

from agent_runtime.registry import WorkerDescriptor


class TickRecorder:
    def worker_tick(self, context):
        with Path(os.environ["AGENT_RUNTIME_TICK_FILE"]).open("a", encoding="utf-8") as tick_file:
            tick_file.write(f"{context.tick_index}\\n")


CONTINUOUS_WORKERS = (WorkerDescriptor(name="recorder", tick_interval_seconds=0.05, factory=TickRecorder),)
'''


def test_supervisor_multiprocessing_launcher_stops_worker_with_clean_exit(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    """Stop a real spawned worker process with SIGTERM and observe exit code 0.

    Args:
        monkeypatch: Pytest monkeypatch fixture.
        tmp_path: Directory holding the registry module and tick file.

    Returns:
        None: Assertions validate the child process lifecycle.

    Raises:
        AssertionError: Raised when the child never ticks or exits uncleanly.
    """

    (tmp_path / "tick_recorder_registry.py").write_text(_TICK_RECORDER_REGISTRY_SOURCE, encoding="utf-8")
    tick_file = tmp_path / "ticks.txt"
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ORCHESTRATOR_API_URL", "https://orchestrator.test/api")
    monkeypatch.setenv("ORCHESTRATOR_API_TOKEN", "secret-token")
    monkeypatch.setenv("AGENT_RUNTIME_TICK_FILE", str(tick_file))

    handle = MultiprocessingProcessLauncher(registry_module="tick_recorder_registry").launcher_spawn("recorder")
    try:
        deadline = time.monotonic() + 30.0
        while not (tick_file.exists() and tick_file.read_text(encoding="utf-8")) and time.monotonic() < deadline:
            assert handle.handle_is_alive(), f"worker exited early exit_code={handle.handle_exit_code()}"
            time.sleep(0.05)
        assert tick_file.exists(), "worker never ticked"

        handle.handle_request_stop()
        handle.handle_join(10.0)

        assert handle.handle_is_alive() is False
        assert handle.handle_exit_code() == 0
    finally:
        if handle.handle_is_alive():
            handle.handle_kill()
            handle.handle_join(5.0)

    assert tick_file.read_text(encoding="utf-8").splitlines()[0] == "1"
