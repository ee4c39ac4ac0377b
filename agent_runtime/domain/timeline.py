"""Execution stage timeline helpers for job and worker diagnostics."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def domain_build_stage_event(
    stage: str,
    status: str,
    details: dict[str, Any] | None = None,
    started_at_utc: datetime | None = None,
) -> dict[str, object]:
    """Build one structured stage event for an execution timeline.

    Args:
        stage: Stage name such as `validate` or `execute`.
        status: Stage status marker such as `started`, `completed` or `failed`.
        details: Optional structured details object.
        started_at_utc: Optional stage start time used to derive `elapsed_ms`.

    Returns:
        dict[str, object]: Structured timeline event.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    recorded_at = datetime.now(timezone.utc)
    event_payload: dict[str, object] = {
        "stage": stage,
        "status": status,
        "at_utc": recorded_at.isoformat(),
    }
    if started_at_utc is not None:
        event_payload["elapsed_ms"] = max(0, int((recorded_at - started_at_utc).total_seconds() * 1000))
    if details is not None:
        event_payload["details"] = details
    return event_payload
