"""Supervisor package for continuous worker process management."""

from .interfaces import ProcessHandle, ProcessLauncherPort, SupervisorStatusPort
from .launcher import MultiprocessingProcessHandle, MultiprocessingProcessLauncher
from .supervisor import (
    AgentSupervisor,
    AgentSupervisorConfig,
    ProcessExitError,
    SupervisedProcessRecord,
    SupervisedProcessState,
)

__all__ = [
    "AgentSupervisor",
    "AgentSupervisorConfig",
    "MultiprocessingProcessHandle",
    "MultiprocessingProcessLauncher",
    "ProcessExitError",
    "ProcessHandle",
    "ProcessLauncherPort",
    "SupervisedProcessRecord",
    "SupervisedProcessState",
    "SupervisorStatusPort",
]
