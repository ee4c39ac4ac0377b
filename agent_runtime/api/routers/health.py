"""Health endpoint router exposing poller and supervisor diagnostics."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from agent_runtime.jobs import PollerStatusPort
from agent_runtime.supervisor import SupervisorStatusPort


def api_create_health_router(
    poller: PollerStatusPort | None,
    supervisor: SupervisorStatusPort | None,
) -> APIRouter:
    """Create health-check router with runtime component status.

    Args:
        poller: Optional job poller diagnostics source.
        supervisor: Optional supervisor diagnostics source.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when neither component is provided.
    """

    if poller is None and supervisor is None:
        raise ValueError("at least one of poller or supervisor must be provided")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Return runtime component health state.

        Returns:
            JSONResponse: `200` while components run, `503` after a fatal poller stop or during shutdown.

        Raises:
            RuntimeError: Raised if component diagnostics cannot be produced.
        """

        poller_payload = poller.poller_status_snapshot() if poller is not None else None
        supervisor_payload = supervisor.supervisor_status_snapshot() if supervisor is not None else None

        degraded_reasons: list[str] = []
        if poller_payload is not None and poller_payload.get("fatal_error"):
            degraded_reasons.append("poller_fatal_error")
        if poller_payload is not None and poller_payload.get("state") == "stopped":
            degraded_reasons.append("poller_stopped")
        if supervisor_payload is not None and supervisor_payload.get("shutting_down"):
            degraded_reasons.append("supervisor_shutting_down")

        payload = {
            "status": "degraded" if degraded_reasons else "ok",
            "reasons": degraded_reasons,
            "poller": poller_payload,
            "supervisor": supervisor_payload,
        }
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE if degraded_reasons else status.HTTP_200_OK
        return JSONResponse(content=payload, status_code=status_code)

    return router
