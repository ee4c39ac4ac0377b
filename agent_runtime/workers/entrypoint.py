"""Child process entrypoint running exactly one continuous worker."""

from __future__ import annotations

import logging
import signal
import threading

from agent_runtime.adapters import HttpOrchestratorGateway
from agent_runtime.config import SettingsLoadError, config_configure_logging, config_load_settings
from agent_runtime.registry import RegistryConfigurationError, registry_load_from_module

from .process_loop import WorkerProcessLoop

logger = logging.getLogger(__name__)

WORKER_EXIT_OK = 0
WORKER_EXIT_FATAL = 1
WORKER_EXIT_CONFIGURATION = 2

_JOIN_POLL_SECONDS = 0.5


def worker_process_main(worker_name: str, registry_module: str | None = None) -> None:
    """Run one registered worker's tick loop until SIGTERM.

    SIGINT is ignored so a terminal interrupt reaches only the supervisor,
    which then stops children in order.

    Args:
        worker_name: Registered worker name.
        registry_module: Optional registry module override; settings value is used when omitted.

    Returns:
        None: Always exits through `SystemExit`.

    Raises:
        SystemExit: Exit code 0 after graceful stop, 1 on fatal loop error, 2 on configuration error.
    """

    signal.signal(signal.SIGINT, signal.SIG_IGN)
    raise SystemExit(_worker_run_configured(worker_name=worker_name, registry_module=registry_module))


def _worker_run_configured(worker_name: str, registry_module: str | None) -> int:
    try:
        settings = config_load_settings()
    except SettingsLoadError as error:
        config_configure_logging()
        logger.critical("Worker process configuration invalid name=%s error=%s", worker_name, error)
        return WORKER_EXIT_CONFIGURATION

    config_configure_logging(settings.log_level)
    try:
        registry = registry_load_from_module(registry_module or settings.registry_module)
    except RegistryConfigurationError as error:
        logger.critical("Worker process registry invalid name=%s error=%s", worker_name, error)
        return WORKER_EXIT_CONFIGURATION

    descriptor = registry.registry_get_worker(worker_name)
    if descriptor is None:
        logger.critical("Worker process started for unregistered name=%s", worker_name)
        return WORKER_EXIT_CONFIGURATION

    gateway = HttpOrchestratorGateway(
        base_url=settings.orchestrator_api_url,
        token=settings.orchestrator_api_token,
        request_timeout_seconds=settings.request_timeout_seconds,
    )
    try:
        return worker_run_until_signalled(WorkerProcessLoop(descriptor=descriptor, gateway=gateway))
    finally:
        gateway.gateway_close()


def worker_run_until_signalled(loop: WorkerProcessLoop) -> int:
    """Run loop on a dedicated thread and translate SIGTERM into a stop request.

    The loop runs off the main thread so the signal handler never sets the
    stop event from inside the thread blocked on it.

    Args:
        loop: Configured worker tick loop.

    Returns:
        int: Process exit code.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    loop_errors: list[BaseException] = []

    def _run_loop() -> None:
        try:
            loop.worker_run()
        except Exception as error:  # pylint: disable=broad-exception-caught
            loop_errors.append(error)
            logger.critical("Continuous worker loop crashed", exc_info=True)

    signal.signal(signal.SIGTERM, loop.worker_stop)
    loop_thread = threading.Thread(target=_run_loop, name="worker-tick-loop")
    loop_thread.start()
    while loop_thread.is_alive():
        loop_thread.join(_JOIN_POLL_SECONDS)

    logger.info("Worker process exiting status=%s crashed=%s", loop.worker_status_snapshot(), bool(loop_errors))
    return WORKER_EXIT_FATAL if loop_errors else WORKER_EXIT_OK
