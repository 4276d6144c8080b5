"""Schema validation for tag attribute schemas.

Attribute schemas must describe a flat object whose properties are all
primitives (string, number, integer, boolean). Incoming schemas are checked in
two steps: first that they are structurally valid Draft 2020-12 JSON Schemas,
then against a fixed meta-schema enforcing the primitives-only shape.
Attribute instances are validated against an accepted schema on every write.
"""
import logging
from typing import Any, Dict, Mapping, Optional

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from tagvault.exceptions import (
    AttributeValidationException,
    InvalidArgumentException,
    InvalidSchemaException,
    NestedTypesNotAllowedException,
)
from tagvault.schemas.attributes import RawJSON, load_json_object

logger = logging.getLogger(__name__)

SUPPORTED_STRING_FORMATS = ["date", "time", "date-time", "email", "uuid", "uri", "hostname", "ipv4", "ipv6"]

PRIMITIVES_ONLY_META_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["type"],
    "properties": {
        "type": {"const": "object"},
        "properties": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "required": ["type"],
                "anyOf": [
                    {
                        "properties": {
                            "type": {"const": "string"},
                            "minLength": {"type": "integer", "minimum": 0},
                            "maxLength": {"type": "integer", "minimum": 0},
                            "pattern": {"type": "string"},
                            "format": {"type": "string", "enum": SUPPORTED_STRING_FORMATS},
                            "enum": {"type": "array", "items": {"type": "string"}},
                        },
                    },
                    {
                        "properties": {
                            "type": {"const": "number"},
                            "minimum": {"type": "number"},
                            "maximum": {"type": "number"},
                            "enum": {"type": "array", "items": {"type": "number"}},
                        },
                    },
                    {
                        "properties": {
                            "type": {"const": "integer"},
                            "minimum": {"type": "integer"},
                            "maximum": {"type": "integer"},
                            "enum": {"type": "array", "items": {"type": "integer"}},
                        },
                    },
                    {
                        "properties": {
                            "type": {"const": "boolean"},
                        },
                    },
                ],
            },
        },
        "required": {"type": "array", "items": {"type": "string"}},
    },
}

# Compiled once, shared read-only
_META_VALIDATOR = Draft202012Validator(PRIMITIVES_ONLY_META_SCHEMA)


def _describe(error) -> str:
    location = "/".join(str(p) for p in error.absolute_path)
    return f"{location or '<root>'}: {error.message}"


def validate_schema_shape(schema: RawJSON) -> Dict[str, Any]:
    """Parse and check an attribute schema.

    Args:
        schema: JSON text or decoded mapping

    Returns:
        The decoded schema document

    Raises:
        InvalidSchemaException: Malformed JSON or not a valid JSON Schema
        NestedTypesNotAllowedException: Not a flat object of primitive properties
    """
    try:
        document = load_json_object(schema, what="schema")
    except InvalidArgumentException as e:
        raise InvalidSchemaException(e.message) from e

    try:
        Draft202012Validator.check_schema(document)
    except SchemaError as e:
        raise InvalidSchemaException(e.message) from e

    errors = sorted(_META_VALIDATOR.iter_errors(document), key=lambda err: list(err.absolute_path))
    if errors:
        # anyOf failures are reported on the property itself, which is what the caller needs
        raise NestedTypesNotAllowedException("; ".join(_describe(err) for err in errors))

    return document


def validate_attributes(schema: Optional[Mapping[str, Any]], instance: Mapping[str, Any]) -> None:
    """Validate an attribute object against an accepted schema.

    Without a schema there is nothing to check and validation succeeds.

    Raises:
        AttributeValidationException: With one message per failure
    """
    if schema is None:
        return

    validator = Draft202012Validator(schema, format_checker=Draft202012Validator.FORMAT_CHECKER)
    errors = sorted(validator.iter_errors(dict(instance)), key=lambda err: list(err.absolute_path))
    if errors:
        messages = [_describe(err) for err in errors]
        logger.debug(f"Attribute validation failed: {messages}")
        raise AttributeValidationException(messages)
