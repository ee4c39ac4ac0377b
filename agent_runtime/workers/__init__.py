"""Continuous worker package: tick loop and child process entrypoint."""

from .context import WorkerTickContext
from .entrypoint import worker_process_main, worker_run_until_signalled
from .process_loop import WorkerProcessLoop

__all__ = ["WorkerProcessLoop", "WorkerTickContext", "worker_process_main", "worker_run_until_signalled"]
