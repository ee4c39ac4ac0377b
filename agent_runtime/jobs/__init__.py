"""Job layer package for discrete job execution and acquisition."""

from .context import ExecutionContext, JobScopedGateway, job_build_execution_context
from .executor import JobExecutor
from .interfaces import JobExecutorPort, PollerStatusPort
from .poller import JobPoller, JobPollerConfig, JobPollerState

__all__ = [
    "ExecutionContext",
    "JobExecutor",
    "JobExecutorPort",
    "JobPoller",
    "JobPollerConfig",
    "JobPollerState",
    "JobScopedGateway",
    "PollerStatusPort",
    "job_build_execution_context",
]
