"""Flat attribute maps.

Raw JSON comes in at the boundary (a string or an already decoded mapping) and
leaves as a flat ``dict[str, AttributeValue]``. Nested objects and arrays are
rejected here, whatever the tag's schema says.
"""
import json
from typing import Any, Dict, Mapping, Optional, Union

from tagvault.exceptions import InvalidArgumentException

AttributeValue = Union[str, int, float, bool, None]
Attributes = Dict[str, AttributeValue]

RawJSON = Union[str, bytes, Mapping[str, Any]]


def _reject_constant(token: str) -> Any:
    raise ValueError(f"{token} is not valid JSON")


def load_json_object(raw: RawJSON, what: str = "attributes") -> Dict[str, Any]:
    """Decode raw JSON into a dict.

    Args:
        raw: JSON text or an already decoded mapping
        what: Name used in error messages

    Raises:
        InvalidArgumentException: On malformed JSON or a non-object value
    """
    if isinstance(raw, Mapping):
        return dict(raw)

    try:
        value = json.loads(raw, parse_constant=_reject_constant)
    except (TypeError, ValueError) as e:
        raise InvalidArgumentException(f"{what} must be valid JSON: {e}") from e

    if not isinstance(value, dict):
        raise InvalidArgumentException(f"{what} must be a JSON object, got {type(value).__name__}")
    return value


def parse_attributes(raw: Optional[RawJSON]) -> Optional[Attributes]:
    """Parse an attribute payload into a flat attribute map.

    Empty strings count as no attributes.

    Returns:
        The attribute map, or None when no attributes were supplied
    """
    if raw is None or (isinstance(raw, (str, bytes)) and not raw.strip()):
        return None

    data = load_json_object(raw)
    for key, value in data.items():
        if isinstance(value, (dict, list, tuple)):
            raise InvalidArgumentException(
                f"attribute '{key}' must be a primitive value, nested objects and arrays are not supported",
                details={"field": key},
            )
        if not isinstance(value, (str, int, float, bool)) and value is not None:
            raise InvalidArgumentException(
                f"attribute '{key}' has unsupported type {type(value).__name__}",
                details={"field": key},
            )
    return data
