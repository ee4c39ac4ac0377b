"""Pluggable payload validators for job handler registrations."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ValidationError

from .interfaces import PayloadValidator


class PayloadValidationError(ValueError):
    """Raised by a payload validator when a job payload does not match its declared shape.

    Attributes:
        issues: Structured validation issues suitable for logs.
    """

    def __init__(self, message: str, issues: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.issues = issues or []


def registry_pydantic_payload_validator(model: type[BaseModel]) -> PayloadValidator:
    """Build a payload validator backed by a pydantic model.

    Args:
        model: Pydantic model describing the payload shape.

    Returns:
        PayloadValidator: Validator returning a model instance.

    Raises:
        ValueError: Raised when model is not a pydantic model class.
    """

    if not (isinstance(model, type) and issubclass(model, BaseModel)):
        raise ValueError("model must be a pydantic BaseModel subclass")

    def _validate(raw_payload: Any) -> BaseModel:
        try:
            return model.model_validate(raw_payload)
        except ValidationError as error:
            issues = [
                {"loc": ".".join(str(part) for part in issue["loc"]), "msg": issue["msg"], "type": issue["type"]}
                for issue in error.errors()
            ]
            summary = "; ".join(f"{issue['loc'] or '<payload>'}: {issue['msg']}" for issue in issues)
            raise PayloadValidationError(
                f"payload does not match {model.__name__}: {summary}",
                issues=issues,
            ) from error

    return _validate


def registry_passthrough_payload_validator(raw_payload: Any) -> Any:
    """Accept any payload unchanged, for handlers that declare no shape."""

    return raw_payload
