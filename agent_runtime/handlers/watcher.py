"""Heartbeat watcher continuous worker."""

from __future__ import annotations

from agent_runtime.registry import WorkerDescriptor
from agent_runtime.workers import WorkerTickContext

WATCHER_WORKER_NAME = "watcher"


class WatcherWorker:
    """Log one heartbeat per tick so supervision is observable in logs."""

    def worker_tick(self, context: WorkerTickContext) -> None:
        context.logger.info("Watcher heartbeat tick_index=%s", context.tick_index)


WATCHER_WORKER = WorkerDescriptor(
    name=WATCHER_WORKER_NAME,
    tick_interval_seconds=60.0,
    factory=WatcherWorker,
)
