"""Echo job handler used to verify end-to-end job flow."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from agent_runtime.domain import Job
from agent_runtime.jobs import ExecutionContext
from agent_runtime.registry import JobHandlerDescriptor, registry_pydantic_payload_validator

ECHO_JOB_TYPE = "echo"


class EchoPayload(BaseModel):
    """Payload shape for the echo job."""

    message: str = Field(min_length=1)


def handler_echo(job: Job, context: ExecutionContext) -> dict[str, str]:
    """Return the payload message unchanged.

    Args:
        job: Job whose payload is a validated `EchoPayload`.
        context: Execution context.

    Returns:
        dict[str, str]: Echoed message and processing timestamp.

    Raises:
        RuntimeError: This handler does not raise runtime errors.
    """

    payload: EchoPayload = job.payload
    context.logger.info("Received echo message: %s", payload.message)
    context.gateway.gateway_update_progress(1.0, "echoed")
    return {
        "echoed": payload.message,
        "processed_at": datetime.now(timezone.utc).isoformat(),
    }


ECHO_HANDLER = JobHandlerDescriptor(
    job_type=ECHO_JOB_TYPE,
    payload_validator=registry_pydantic_payload_validator(EchoPayload),
    handler=handler_echo,
)
