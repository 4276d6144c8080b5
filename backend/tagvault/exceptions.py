"""
tagvault - Custom Exceptions.

Every error raised to callers carries a stable ``code`` (the error kind) and a
human-readable ``message``. Transport layers map ``code`` to their own status
codes.
"""

from typing import Any


class TagVaultException(Exception):
    """Base exception for tagvault."""

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)


class InvalidArgumentException(TagVaultException):
    """Raised for malformed names, paths, colors, JSON or attributes."""

    def __init__(self, message: str, details: dict[str, Any] | None = None, code: str = "INVALID_ARGUMENT"):
        super().__init__(code=code, message=message, details=details)


class InvalidSchemaException(InvalidArgumentException):
    """Raised when a schema is not valid JSON or not a valid JSON Schema."""

    def __init__(self, message: str):
        super().__init__(f"invalid JSON schema: {message}", code="INVALID_SCHEMA")


class NestedTypesNotAllowedException(InvalidArgumentException):
    """Raised when a schema declares object, array or null property types."""

    def __init__(self, message: str):
        super().__init__(
            "nested types not allowed in schema, only primitive types are supported: " + message,
            code="NESTED_TYPES_NOT_ALLOWED",
        )


class AttributeValidationException(InvalidArgumentException):
    """Raised when attributes don't match the applicable schema."""

    def __init__(self, errors: list[str]):
        super().__init__(
            f"attribute validation failed: {'; '.join(errors)}",
            details={"errors": errors},
            code="VALIDATION_FAILED",
        )
        self.errors = errors


class NotFoundException(TagVaultException):
    """Raised when a namespace, tag, document or association is absent."""

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource_type} not found: {resource_id}",
            details={"resource_type": resource_type, "resource_id": str(resource_id)},
        )


class ParentNotFoundException(NotFoundException):
    """Raised when the parent path of a tag doesn't resolve."""

    def __init__(self, parent_path: str):
        super().__init__("parent tag", parent_path)


class AlreadyExistsException(TagVaultException):
    """Raised on a uniqueness collision."""

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            code="ALREADY_EXISTS",
            message=f"{resource_type} already exists: {resource_id}",
            details={"resource_type": resource_type, "resource_id": str(resource_id)},
        )


class InvalidParentReferenceException(TagVaultException):
    """Raised when a tag would become its own ancestor."""

    def __init__(self, tag_path: str, parent_path: str):
        super().__init__(
            code="INVALID_PARENT_REFERENCE",
            message=f"tag {tag_path} cannot be moved under {parent_path}",
            details={"tag_path": tag_path, "parent_path": parent_path},
        )


class InternalException(TagVaultException):
    """Raised for persistence failures not attributable to caller input."""

    def __init__(self, message: str):
        super().__init__(code="INTERNAL", message=message)
