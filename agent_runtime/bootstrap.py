"""Runtime bootstrap wiring for startup validation and dependency assembly."""

from __future__ import annotations

from dataclasses import dataclass

from agent_runtime.adapters import HttpOrchestratorGateway
from agent_runtime.config import RuntimeSettings
from agent_runtime.domain import RetryBackoffStrategy
from agent_runtime.jobs import JobExecutor, JobPoller, JobPollerConfig
from agent_runtime.registry import HandlerRegistry, registry_load_from_module
from agent_runtime.supervisor import AgentSupervisor, AgentSupervisorConfig, MultiprocessingProcessLauncher


@dataclass(frozen=True)
class RuntimeComponents:
    """Assembled runtime components for one main process.

    Attributes:
        registry: Loaded handler registry.
        gateway: Orchestrator gateway owned by the main process.
        poller: Job poller, None when disabled or no job type is registered.
        supervisor: Agent supervisor, None when disabled or no worker is registered.
    """

    registry: HandlerRegistry
    gateway: HttpOrchestratorGateway
    poller: JobPoller | None
    supervisor: AgentSupervisor | None


def bootstrap_create_gateway(settings: RuntimeSettings) -> HttpOrchestratorGateway:
    """Build orchestrator gateway from validated settings.

    Args:
        settings: Validated runtime settings.

    Returns:
        HttpOrchestratorGateway: Configured gateway instance.

    Raises:
        ValueError: Raised when gateway settings are invalid.
    """

    return HttpOrchestratorGateway(
        base_url=settings.orchestrator_api_url,
        token=settings.orchestrator_api_token,
        request_timeout_seconds=settings.request_timeout_seconds,
    )


def bootstrap_create_poller(
    settings: RuntimeSettings,
    registry: HandlerRegistry,
    gateway: HttpOrchestratorGateway,
) -> JobPoller:
    """Build job poller with executor and retry strategies from settings.

    Args:
        settings: Validated runtime settings.
        registry: Loaded handler registry.
        gateway: Orchestrator gateway.

    Returns:
        JobPoller: Configured job poller.

    Raises:
        ValueError: Raised when no capability remains after filtering.
    """

    return JobPoller(
        gateway=gateway,
        registry=registry,
        executor=JobExecutor(gateway=gateway),
        config=JobPollerConfig(
            hostname=settings.worker_hostname,
            poll_timeout_seconds=settings.poll_timeout_seconds,
            poll_backoff=RetryBackoffStrategy(
                backoff_base_seconds=settings.poll_backoff_base_seconds,
                max_backoff_seconds=settings.poll_backoff_max_seconds,
                jitter_min_multiplier=settings.backoff_jitter_min_multiplier,
                jitter_max_multiplier=settings.backoff_jitter_max_multiplier,
            ),
            report_backoff=RetryBackoffStrategy(
                backoff_base_seconds=settings.report_backoff_base_seconds,
                max_backoff_seconds=settings.report_backoff_max_seconds,
                jitter_min_multiplier=settings.backoff_jitter_min_multiplier,
                jitter_max_multiplier=settings.backoff_jitter_max_multiplier,
            ),
            report_retry_attempts=settings.report_retry_attempts,
            register_retry_attempts=settings.register_retry_attempts,
            capability_filter=settings.settings_capability_filter(),
        ),
    )


def bootstrap_create_supervisor(settings: RuntimeSettings, registry: HandlerRegistry) -> AgentSupervisor:
    """Build agent supervisor with a multiprocessing launcher.

    Args:
        settings: Validated runtime settings.
        registry: Loaded handler registry.

    Returns:
        AgentSupervisor: Configured supervisor.

    Raises:
        ValueError: Raised when supervision settings are invalid.
    """

    return AgentSupervisor(
        launcher=MultiprocessingProcessLauncher(registry_module=settings.registry_module),
        workers=registry.registry_list_workers(),
        config=AgentSupervisorConfig(
            restart_delay_seconds=settings.supervisor_restart_delay_seconds,
            shutdown_grace_seconds=settings.supervisor_shutdown_grace_seconds,
            monitor_interval_seconds=settings.supervisor_monitor_interval_seconds,
            max_restarts=settings.supervisor_max_restarts,
        ),
    )


def bootstrap_create_runtime(
    settings: RuntimeSettings,
    enable_poller: bool = True,
    enable_supervisor: bool = True,
) -> RuntimeComponents:
    """Assemble runtime components after loading the handler registry.

    Args:
        settings: Validated runtime settings.
        enable_poller: Whether to build the job poller.
        enable_supervisor: Whether to build the agent supervisor.

    Returns:
        RuntimeComponents: Assembled components.

    Raises:
        RegistryConfigurationError: Raised when registrations are inconsistent.
        ValueError: Raised when the requested components have nothing to run.
    """

    registry = registry_load_from_module(settings.registry_module)
    gateway = bootstrap_create_gateway(settings)

    poller = None
    if enable_poller and registry.registry_list_capabilities():
        poller = bootstrap_create_poller(settings=settings, registry=registry, gateway=gateway)

    supervisor = None
    if enable_supervisor and registry.registry_list_workers():
        supervisor = bootstrap_create_supervisor(settings=settings, registry=registry)

    if poller is None and supervisor is None:
        gateway.gateway_close()
        raise ValueError("nothing to run: no job handlers or continuous workers enabled for this command")

    return RuntimeComponents(registry=registry, gateway=gateway, poller=poller, supervisor=supervisor)
