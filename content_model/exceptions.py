"""
Custom Exception Classes for the content model

This module defines the error taxonomy shared by Lists, Field types and the
registries, so host applications get consistent error responses.

Configuration errors are fatal and raised immediately. Validation and update
errors are recoverable and carry per-path details for the caller.
"""

from enum import Enum
from typing import Any

from fastapi import status


class ErrorCode(str, Enum):
    """Machine-readable error codes, stable across releases."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    UNKNOWN_FIELD_TYPE = "CONFIGURATION_UNKNOWN_FIELD_TYPE"
    DUPLICATE_PATH = "CONFIGURATION_DUPLICATE_PATH"
    RESERVED_PATH = "CONFIGURATION_RESERVED_PATH"
    LIST_FROZEN = "CONFIGURATION_LIST_FROZEN"
    LIST_ALREADY_REGISTERED = "CONFIGURATION_LIST_ALREADY_REGISTERED"
    DUPLICATE_LIST = "CONFIGURATION_DUPLICATE_LIST"
    LIST_NOT_FOUND = "CONFIGURATION_LIST_NOT_FOUND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    UPDATE_FAILED = "UPDATE_FAILED"
    UNIQUENESS_EXHAUSTED = "UPDATE_UNIQUENESS_EXHAUSTED"
    RECORD_NOT_FOUND = "RESOURCE_RECORD_NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ContentModelError(Exception):
    """Base exception class for all content model errors"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.error_code = error_code
        super().__init__(self.message)


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigurationError(ContentModelError):
    """Raised when a List or field type is declared incorrectly"""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        error_code: ErrorCode = ErrorCode.CONFIGURATION_ERROR,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
            error_code=error_code,
        )


class UnknownFieldTypeError(ConfigurationError):
    """Raised when a field spec names a type tag nobody registered"""

    def __init__(self, type_tag: Any, path: str | None = None, list_key: str | None = None):
        message = f"Unknown field type '{type_tag}'"
        if path:
            message = f"{message} for path '{path}'"
        if list_key:
            message = f"{message} on list '{list_key}'"
        super().__init__(
            message=message,
            details={"type_tag": str(type_tag), "path": path, "list": list_key},
            error_code=ErrorCode.UNKNOWN_FIELD_TYPE,
        )


class DuplicatePathError(ConfigurationError):
    """Raised when a path is declared twice on the same List"""

    def __init__(self, list_key: str, path: str):
        super().__init__(
            message=f"Path '{path}' is already declared on list '{list_key}'",
            details={"list": list_key, "path": path},
            error_code=ErrorCode.DUPLICATE_PATH,
        )


class ReservedPathError(ConfigurationError):
    """Raised when a field path collides with a reserved name"""

    def __init__(self, list_key: str, path: str):
        super().__init__(
            message=f"Path '{path}' on list '{list_key}' is reserved",
            details={"list": list_key, "path": path},
            error_code=ErrorCode.RESERVED_PATH,
        )


class ListFrozenError(ConfigurationError):
    """Raised when a registered List is mutated"""

    def __init__(self, list_key: str, operation: str = "modify"):
        super().__init__(
            message=f"Cannot {operation} list '{list_key}' after it has been registered",
            details={"list": list_key, "operation": operation},
            error_code=ErrorCode.LIST_FROZEN,
        )


class ListAlreadyRegisteredError(ConfigurationError):
    """Raised when register() is called twice"""

    def __init__(self, list_key: str):
        super().__init__(
            message=f"List '{list_key}' has already been registered",
            details={"list": list_key},
            error_code=ErrorCode.LIST_ALREADY_REGISTERED,
        )


class DuplicateListError(ConfigurationError):
    """Raised when two Lists with the same key are registered"""

    def __init__(self, list_key: str):
        super().__init__(
            message=f"A list with key '{list_key}' is already registered",
            details={"list": list_key},
            error_code=ErrorCode.DUPLICATE_LIST,
        )


class ListNotFoundError(ConfigurationError):
    """Raised when a List key cannot be resolved through the registry"""

    def __init__(self, list_key: str):
        super().__init__(
            message=f"Unknown list '{list_key}'",
            details={"list": list_key},
            error_code=ErrorCode.LIST_NOT_FOUND,
        )


# ============================================================================
# Validation & Update Exceptions
# ============================================================================


class ValidationError(ContentModelError):
    """Raised when input fails one or more field validations"""

    def __init__(self, message: str = "Validation failed", errors: dict[str, str] | None = None):
        self.errors = errors or {}
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"fields": self.errors} if self.errors else {},
            error_code=ErrorCode.VALIDATION_FAILED,
        )


class UpdateError(ContentModelError):
    """Raised when a value cannot be coerced or written to a record"""

    def __init__(self, message: str, path: str | None = None, details: dict[str, Any] | None = None):
        error_details = details or {}
        if path:
            error_details["path"] = path
        self.path = path
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=error_details,
            error_code=ErrorCode.UPDATE_FAILED,
        )


class UniquenessExhaustedError(ContentModelError):
    """Raised when getUniqueValue runs out of attempts"""

    def __init__(self, path: str, value: Any, attempts: int):
        super().__init__(
            message=f"Could not find a unique value for '{path}' from '{value}' after {attempts} attempts",
            status_code=status.HTTP_409_CONFLICT,
            details={"path": path, "value": value, "attempts": attempts},
            error_code=ErrorCode.UNIQUENESS_EXHAUSTED,
        )


class RecordNotFoundError(ContentModelError):
    """Raised when a record id does not exist in a List's table"""

    def __init__(self, list_key: str, record_id: Any | None = None):
        message = f"{list_key} not found"
        if record_id is not None:
            message = f"{list_key} with id '{record_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"list": list_key, "record_id": record_id},
            error_code=ErrorCode.RECORD_NOT_FOUND,
        )
