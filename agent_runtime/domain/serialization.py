"""JSON wire encoding for handler results and request bodies."""

from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter

_JSON_VALUE_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


class ResultSerializationError(ValueError):
    """Raised when a value cannot be represented as JSON."""


def domain_to_json_compatible(value: Any) -> Any:
    """Convert a value into plain JSON-compatible Python data.

    Datetimes, UUIDs, decimals, dataclasses and pydantic models are converted
    to their JSON representations; anything else unknown is rejected.

    Args:
        value: Arbitrary handler result or request body.

    Returns:
        Any: Structure made of dicts, lists, strings, numbers, booleans and None.

    Raises:
        ResultSerializationError: Raised when value contains an unserializable object.
    """

    try:
        return _JSON_VALUE_ADAPTER.dump_python(value, mode="json")
    except (TypeError, ValueError) as error:
        raise ResultSerializationError(f"value is not JSON serializable: {error}") from error
