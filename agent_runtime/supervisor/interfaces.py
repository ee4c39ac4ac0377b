"""Typed interfaces for launching and controlling worker processes."""

from typing import Any, Protocol


class ProcessHandle(Protocol):
    """Handle for one launched OS process."""

    @property
    def pid(self) -> int | None:
        """Return OS process id, None before the process started."""

    def handle_is_alive(self) -> bool:
        """Return whether the process is still running.

        Returns:
            bool: True while the process has not exited.

        Raises:
            RuntimeError: Raised when process state cannot be queried.
        """

    def handle_exit_code(self) -> int | None:
        """Return exit code, None while running. Negative values name the terminating signal."""

    def handle_request_stop(self) -> None:
        """Send the graceful-stop signal (SIGTERM).

        Returns:
            None: Signals the process as side effect.

        Raises:
            OSError: Raised when the signal cannot be delivered.
        """

    def handle_kill(self) -> None:
        """Force-terminate the process (SIGKILL).

        Returns:
            None: Signals the process as side effect.

        Raises:
            OSError: Raised when the signal cannot be delivered.
        """

    def handle_join(self, timeout_seconds: float) -> None:
        """Wait up to `timeout_seconds` for the process to exit."""


class ProcessLauncherPort(Protocol):
    """Port definition for spawning one process per continuous worker."""

    def launcher_spawn(self, worker_name: str) -> ProcessHandle:
        """Start a process running the named worker's tick loop.

        Args:
            worker_name: Registered worker name passed to the child.

        Returns:
            ProcessHandle: Handle of the started process.

        Raises:
            OSError: Raised when the process cannot be started.
        """


class SupervisorStatusPort(Protocol):
    """Port definition for reading supervisor diagnostics."""

    def supervisor_status_snapshot(self) -> dict[str, Any]:
        """Return shutdown flag, process records and pending restarts.

        Returns:
            dict[str, Any]: Supervisor diagnostics snapshot.

        Raises:
            RuntimeError: Raised when diagnostics are unavailable.
        """
