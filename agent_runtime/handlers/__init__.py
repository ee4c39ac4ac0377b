"""Built-in registration module loaded when no generated registry is configured.

Generated registry modules follow the same contract: expose `JOB_HANDLERS`
and `CONTINUOUS_WORKERS` sequences of descriptors.
"""

from .echo import ECHO_HANDLER
from .watcher import WATCHER_WORKER

JOB_HANDLERS = (ECHO_HANDLER,)
CONTINUOUS_WORKERS = (WATCHER_WORKER,)

__all__ = ["CONTINUOUS_WORKERS", "JOB_HANDLERS"]
