"""Process launcher backed by the multiprocessing spawn context."""

from __future__ import annotations

import multiprocessing
from multiprocessing.process import BaseProcess

from agent_runtime.workers import worker_process_main

from .interfaces import ProcessHandle, ProcessLauncherPort


class MultiprocessingProcessHandle(ProcessHandle):
    """Process handle wrapping one `multiprocessing` process."""

    def __init__(self, process: BaseProcess):
        self._process = process

    @property
    def pid(self) -> int | None:
        return self._process.pid

    def handle_is_alive(self) -> bool:
        return self._process.is_alive()

    def handle_exit_code(self) -> int | None:
        return self._process.exitcode

    def handle_request_stop(self) -> None:
        self._process.terminate()

    def handle_kill(self) -> None:
        self._process.kill()

    def handle_join(self, timeout_seconds: float) -> None:
        self._process.join(timeout=max(0.0, timeout_seconds))


class MultiprocessingProcessLauncher(ProcessLauncherPort):
    """Launch each worker in a fresh interpreter with no inherited memory."""

    def __init__(self, registry_module: str):
        """Initialize launcher.

        Args:
            registry_module: Registry module path forwarded to each child.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when registry module path is blank.
        """

        normalized_registry_module = registry_module.strip()
        if not normalized_registry_module:
            raise ValueError("registry_module must not be blank")

        self._registry_module = normalized_registry_module
        self._context = multiprocessing.get_context("spawn")

    def launcher_spawn(self, worker_name: str) -> ProcessHandle:
        """Start one child process running `worker_process_main`.

        Args:
            worker_name: Registered worker name.

        Returns:
            ProcessHandle: Started process handle.

        Raises:
            OSError: Raised when the process cannot be started.
        """

        process = self._context.Process(
            target=worker_process_main,
            args=(worker_name, self._registry_module),
            name=f"worker-{worker_name}",
            daemon=False,
        )
        process.start()
        return MultiprocessingProcessHandle(process)
