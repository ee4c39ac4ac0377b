"""Main module entrypoint for local runtime execution.

This module validates startup configuration, then runs the job poller and the
agent supervisor until a termination signal arrives.
"""

import argparse
import logging
import signal
import threading
import time

import uvicorn

from agent_runtime.adapters import GatewayError
from agent_runtime.api import create_api_application
from agent_runtime.bootstrap import RuntimeComponents, bootstrap_create_runtime
from agent_runtime.config import RuntimeSettings, config_configure_logging, config_load_settings
from agent_runtime.workers import worker_process_main

logger = logging.getLogger("agent_runtime.main")

_MAIN_WAIT_SECONDS = 0.5


class _ShutdownRequest:
    """Plain flag set from signal handlers; never blocks."""

    def __init__(self) -> None:
        self.requested = False
        self.signal_count = 0


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
        SystemExit: Raised with a non-zero code after a fatal poller stop.
    """

    argument_parser = argparse.ArgumentParser(description="Agent runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="run",
        choices=("run", "poller", "supervisor", "worker"),
        help="Runtime command: `run` starts poller and supervisor, `poller` and `supervisor` start one of them, "
        "`worker` runs one continuous worker in the foreground",
        type=str,
    )
    argument_parser.add_argument(
        "--name",
        dest="worker_name",
        type=str,
        help="Continuous worker name for `worker`",
    )
    argument_parser.add_argument(
        "--registry-module",
        dest="registry_module",
        type=str,
        help="Optional registry module override for `worker`",
    )
    parsed_arguments = argument_parser.parse_args()

    if parsed_arguments.command == "worker":
        if not parsed_arguments.worker_name:
            argument_parser.error("`worker` requires --name")
        worker_process_main(parsed_arguments.worker_name, parsed_arguments.registry_module)
        return

    settings = config_load_settings()
    config_configure_logging(settings.log_level)
    components = bootstrap_create_runtime(
        settings=settings,
        enable_poller=parsed_arguments.command in {"run", "poller"},
        enable_supervisor=parsed_arguments.command in {"run", "supervisor"},
    )
    exit_code = main_run_components(settings=settings, components=components)
    if exit_code != 0:
        raise SystemExit(exit_code)


def main_run_components(settings: RuntimeSettings, components: RuntimeComponents) -> int:
    """Run poller and supervisor until signalled or until the poller stops fatally.

    Shutdown order: stop the poller after its in-flight report, shut the
    supervisor down, then wait for the poller thread.

    Args:
        settings: Validated runtime settings.
        components: Assembled runtime components.

    Returns:
        int: Process exit code, 1 after a fatal poller error or a poller crash.

    Raises:
        RuntimeError: This function does not raise runtime errors.
    """

    shutdown_request = _ShutdownRequest()

    def _handle_signal(signum: int, _frame) -> None:
        shutdown_request.signal_count += 1
        shutdown_request.requested = True
        if components.poller is not None:
            components.poller.poller_stop()

    signal.signal(signal.SIGTERM, _handle_signal)
    signal.signal(signal.SIGINT, _handle_signal)

    status_server = main_start_status_api(settings=settings, components=components) if settings.status_api_enabled else None

    poller_errors: list[Exception] = []
    poller_thread: threading.Thread | None = None
    if components.poller is not None:
        poller = components.poller

        def _run_poller() -> None:
            try:
                poller.poller_run()
            except GatewayError as error:
                poller_errors.append(error)
            except Exception as error:  # pylint: disable=broad-exception-caught
                logger.critical("Job poller crashed unexpectedly", exc_info=True)
                poller_errors.append(error)
            finally:
                shutdown_request.requested = True

        poller_thread = threading.Thread(target=_run_poller, name="job-poller")

    try:
        if components.supervisor is not None:
            components.supervisor.supervisor_start()
        if poller_thread is not None:
            poller_thread.start()

        while not shutdown_request.requested:
            time.sleep(_MAIN_WAIT_SECONDS)
        logger.info("Runtime shutdown requested signals=%s", shutdown_request.signal_count)
    finally:
        if components.poller is not None:
            components.poller.poller_stop()
        if components.supervisor is not None:
            components.supervisor.supervisor_shutdown()
        if poller_thread is not None and poller_thread.is_alive():
            poller_thread.join()
        if status_server is not None:
            status_server.should_exit = True
        components.gateway.gateway_close()

    if poller_errors:
        logger.critical("Runtime exiting after fatal poller error: %s", poller_errors[0])
        return 1
    return 0


def main_start_status_api(settings: RuntimeSettings, components: RuntimeComponents) -> uvicorn.Server:
    """Serve the status API on a daemon thread.

    Args:
        settings: Validated runtime settings.
        components: Assembled runtime components.

    Returns:
        uvicorn.Server: Running server; set `should_exit` to stop it.

    Raises:
        ValueError: Raised when no component is available for status reporting.
    """

    application = create_api_application(
        environment_name=settings.environment_name,
        poller=components.poller,
        supervisor=components.supervisor,
    )
    server = uvicorn.Server(
        uvicorn.Config(
            application,
            host=settings.status_api_host,
            port=settings.status_api_port,
            log_level=settings.log_level.lower(),
        )
    )
    threading.Thread(target=server.run, name="status-api", daemon=True).start()
    logger.info("Status API listening host=%s port=%s", settings.status_api_host, settings.status_api_port)
    return server


if __name__ == "__main__":
    main()
