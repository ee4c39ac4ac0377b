"""Regression tests for continuous worker tick loop and process entrypoint behavior."""

from __future__ import annotations

import logging
import os
import signal
import threading

import pytest

import agent_runtime.workers.entrypoint as entrypoint_module
from agent_runtime.config import RuntimeSettings, SettingsLoadError
from agent_runtime.registry import WorkerDescriptor
from agent_runtime.workers import WorkerProcessLoop, WorkerTickContext, worker_run_until_signalled


class _VirtualClockStopEvent:
    """Stop event double advancing a virtual clock on each wait."""

    def __init__(self, stop_after_seconds: float):
        """Initialize virtual clock state.

        Args:
            stop_after_seconds: Virtual elapsed time after which the event is set.

        Returns:
            None: Initializer does not return values.

        Raises:
            RuntimeError: This double does not raise runtime errors.
        """

        self.stop_after_seconds = stop_after_seconds
        self.elapsed_seconds = 0.0
        self.loop: WorkerProcessLoop | None = None
        self.running_at_deadline: bool | None = None
        self._is_set = False

    def is_set(self) -> bool:
        return self._is_set

    def set(self) -> None:
        self._is_set = True

    def wait(self, timeout: float | None = None) -> bool:
        self.elapsed_seconds += timeout or 0.0
        if self.elapsed_seconds >= self.stop_after_seconds and not self._is_set:
            assert self.loop is not None
            self.running_at_deadline = self.loop.running
            self._is_set = True
        return self._is_set


class _FailingWorker:
    def worker_tick(self, context: WorkerTickContext) -> None:
        raise RuntimeError(f"tick {context.tick_index} failed")


def test_workers_loop_keeps_ticking_when_every_tick_fails() -> None:
    """Contain tick failures and keep the loop alive until stopped.

    Returns:
        None: Assertions validate failure containment and tick cadence.

    Raises:
        AssertionError: Raised when a failing tick ends the loop.
    """

    stop_event = _VirtualClockStopEvent(stop_after_seconds=5.0)
    loop = WorkerProcessLoop(
        descriptor=WorkerDescriptor(name="flaky", tick_interval_seconds=1.0, factory=_FailingWorker),
        stop_event=stop_event,
    )
    stop_event.loop = loop

    loop.worker_run()

    assert 4 <= loop.tick_count <= 6
    assert loop.tick_failure_count == loop.tick_count
    assert stop_event.running_at_deadline is True
    assert loop.running is False


def test_workers_loop_stop_preempts_long_wait() -> None:
    """End the inter-tick wait promptly on stop rather than after the full interval.

    Returns:
        None: Assertions validate interruptible waiting.

    Raises:
        AssertionError: Raised when the loop sleeps through a stop request.
    """

    first_tick_done = threading.Event()

    class _SignallingWorker:
        def worker_tick(self, context: WorkerTickContext) -> None:
            _ = context
            first_tick_done.set()

    loop = WorkerProcessLoop(
        descriptor=WorkerDescriptor(name="slow", tick_interval_seconds=3600.0, factory=_SignallingWorker),
    )
    loop_thread = threading.Thread(target=loop.worker_run)
    loop_thread.start()

    assert first_tick_done.wait(5.0)
    loop.worker_stop()
    loop_thread.join(5.0)

    assert not loop_thread.is_alive()
    assert loop.tick_count == 1


def test_workers_loop_finishes_in_flight_tick_before_exit() -> None:
    """Let the current tick return before the loop honors a stop request.

    Returns:
        None: Assertions validate stop ordering.

    Raises:
        AssertionError: Raised when a tick is abandoned mid-way.
    """

    tick_events: list[str] = []
    loop_holder: dict[str, WorkerProcessLoop] = {}

    class _SelfStoppingWorker:
        def worker_tick(self, context: WorkerTickContext) -> None:
            tick_events.append(f"start:{context.tick_index}")
            loop_holder["loop"].worker_stop()
            tick_events.append(f"end:{context.tick_index}")

    loop = WorkerProcessLoop(
        descriptor=WorkerDescriptor(name="once", tick_interval_seconds=1.0, factory=_SelfStoppingWorker),
    )
    loop_holder["loop"] = loop

    loop.worker_run()

    assert tick_events == ["start:1", "end:1"]
    assert loop.worker_status_snapshot() == {
        "name": "once",
        "running": False,
        "tick_count": 1,
        "tick_failure_count": 0,
    }


def test_workers_run_until_signalled_stops_on_sigterm() -> None:
    """Translate SIGTERM into a graceful stop with exit code 0.

    Returns:
        None: Assertions validate signal-driven shutdown.

    Raises:
        AssertionError: Raised when SIGTERM does not stop the loop.
    """

    class _SigtermWorker:
        def worker_tick(self, context: WorkerTickContext) -> None:
            if context.tick_index == 2:
                os.kill(os.getpid(), signal.SIGTERM)

    loop = WorkerProcessLoop(
        descriptor=WorkerDescriptor(name="signalled", tick_interval_seconds=0.01, factory=_SigtermWorker),
    )
    previous_handler = signal.getsignal(signal.SIGTERM)
    try:
        exit_code = worker_run_until_signalled(loop)
    finally:
        signal.signal(signal.SIGTERM, previous_handler)

    assert exit_code == entrypoint_module.WORKER_EXIT_OK
    assert loop.running is False
    assert loop.tick_count >= 2


def test_workers_run_until_signalled_reports_factory_crash(caplog: pytest.LogCaptureFixture) -> None:
    """Return fatal exit code and log final status when the worker cannot be constructed.

    Args:
        caplog: Pytest log capture fixture.

    Returns:
        None: Assertions validate crash exit code.

    Raises:
        AssertionError: Raised when factory errors are reported as success.
    """

    def _broken_factory():
        raise RuntimeError("missing credentials")

    loop = WorkerProcessLoop(
        descriptor=WorkerDescriptor(name="broken", tick_interval_seconds=1.0, factory=_broken_factory),
    )
    previous_handler = signal.getsignal(signal.SIGTERM)
    try:
        with caplog.at_level(logging.INFO, logger=entrypoint_module.logger.name):
            exit_code = worker_run_until_signalled(loop)
    finally:
        signal.signal(signal.SIGTERM, previous_handler)

    assert exit_code == entrypoint_module.WORKER_EXIT_FATAL
    assert loop.tick_count == 0
    exit_messages = [record.getMessage() for record in caplog.records if "Worker process exiting" in record.getMessage()]
    assert len(exit_messages) == 1
    assert "'name': 'broken'" in exit_messages[0]
    assert "crashed=True" in exit_messages[0]


def test_workers_entrypoint_configuration_errors_exit_with_code_2(monkeypatch: pytest.MonkeyPatch) -> None:
    """Exit with configuration code for invalid settings and unregistered worker names.

    Args:
        monkeypatch: Pytest monkeypatch fixture.

    Returns:
        None: Assertions validate configuration exit codes.

    Raises:
        AssertionError: Raised when configuration errors are not detected.
    """

    monkeypatch.setattr(entrypoint_module, "config_configure_logging", lambda level="INFO": None)

    def _raise_settings_error() -> RuntimeSettings:
        raise SettingsLoadError("ORCHESTRATOR_API_TOKEN: Field required")

    monkeypatch.setattr(entrypoint_module, "config_load_settings", _raise_settings_error)
    assert (
        entrypoint_module._worker_run_configured(worker_name="watcher", registry_module=None)
        == entrypoint_module.WORKER_EXIT_CONFIGURATION
    )

    settings = RuntimeSettings(
        _env_file=None,
        orchestrator_api_url="https://orchestrator.test/api",
        orchestrator_api_token="secret",
    )
    monkeypatch.setattr(entrypoint_module, "config_load_settings", lambda: settings)
    assert (
        entrypoint_module._worker_run_configured(worker_name="missing", registry_module="agent_runtime.handlers")
        == entrypoint_module.WORKER_EXIT_CONFIGURATION
    )
    assert (
        entrypoint_module._worker_run_configured(worker_name="watcher", registry_module="agent_runtime.no_such_module")
        == entrypoint_module.WORKER_EXIT_CONFIGURATION
    )
