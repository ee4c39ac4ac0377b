"""FastAPI application factory for the runtime status surface."""

from fastapi import FastAPI

from agent_runtime.jobs import PollerStatusPort
from agent_runtime.supervisor import SupervisorStatusPort

from .routers import api_create_health_router


def create_api_application(
    environment_name: str,
    poller: PollerStatusPort | None = None,
    supervisor: SupervisorStatusPort | None = None,
) -> FastAPI:
    """Create the FastAPI application instance for runtime status.

    Args:
        environment_name: Runtime environment label.
        poller: Optional job poller diagnostics source.
        supervisor: Optional supervisor diagnostics source.

    Returns:
        FastAPI: Framework application instance.

    Raises:
        ValueError: Raised when neither component is provided.
    """
    application = FastAPI(title="Agent Runtime")

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return service identification.

        Returns:
            dict[str, str]: Service name and environment.

        Raises:
            RuntimeError: Raised if route handler cannot produce a response.
        """

        return {
            "service": "agent-runtime",
            "environment": environment_name,
        }

    application.include_router(api_create_health_router(poller=poller, supervisor=supervisor))
    return application
