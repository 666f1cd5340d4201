"""
Course Board Exception Hierarchy.

Defines the exceptions raised across the Course Board system.
Validation failures inside registries are returned as values; these
classes are what ``RegistryResult.unwrap()`` raises for them, and what
the storage and configuration layers raise directly.
"""

from typing import Any


class CourseBoardError(Exception):
    """
    Base exception for all Course Board errors.

    All custom exceptions inherit from this class, allowing
    generic catch blocks and consistent error handling.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        """
        Initialize a CourseBoardError.

        Args:
            message: Human-readable error message
            details: Optional structured data for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details."""
        base = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{base} ({details_str})"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(CourseBoardError):
    """
    Errors in configuration loading or validation.

    Raised when:
    - Environment variables hold invalid values
    - A store map name is not a valid identifier
    """

    def __init__(
        self,
        message: str,
        *,
        env_var: str | None = None,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if env_var:
            details["env_var"] = env_var
        if config_key:
            details["config_key"] = config_key

        super().__init__(message, details=details)
        self.env_var = env_var
        self.config_key = config_key


class StorageError(CourseBoardError):
    """
    Errors raised by the durable ordered map.

    Wraps sqlite failures, undecodable stored values and use of a
    closed store.
    """

    def __init__(
        self,
        message: str,
        *,
        map_name: str | None = None,
        key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if map_name:
            details["map_name"] = map_name
        if key:
            details["key"] = key

        super().__init__(message, details=details)
        self.map_name = map_name
        self.key = key


class RegistryError(CourseBoardError):
    """
    Errors in registry operations.

    Base class for the four registry failure kinds:
    - Entity not found
    - Duplicate unique value
    - Missing cross-registry reference
    - Invalid payload
    """

    def __init__(
        self,
        message: str,
        *,
        entity_type: str | None = None,
        entity_id: str | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a RegistryError.

        Args:
            message: Human-readable error message
            entity_type: Type of entity involved
            entity_id: ID of entity involved
            operation: Operation being performed
            details: Optional structured data for debugging
        """
        details = details or {}
        if entity_type:
            details["entity_type"] = entity_type
        if entity_id:
            details["entity_id"] = entity_id
        if operation:
            details["operation"] = operation

        super().__init__(message, details=details)
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.operation = operation


class EntityNotFoundError(RegistryError):
    """Raised when a requested entity does not exist in the registry."""

    def __init__(
        self,
        message: str = "Entity not found",
        *,
        entity_type: str | None = None,
        entity_id: str | None = None,
        operation: str | None = None,
    ):
        super().__init__(
            message,
            entity_type=entity_type,
            entity_id=entity_id,
            operation=operation,
        )


class DuplicateValueError(RegistryError):
    """Raised when a unique field value is already held by a live record."""

    def __init__(
        self,
        message: str = "Value already exists",
        *,
        entity_type: str | None = None,
        field: str | None = None,
        value: Any = None,
        operation: str | None = None,
    ):
        details = {"field": field, "value": value}
        super().__init__(
            message,
            entity_type=entity_type,
            operation=operation,
            details=details,
        )
        self.field = field
        self.value = value


class ReferenceNotFoundError(RegistryError):
    """Raised when a payload references an id missing from another registry."""

    def __init__(
        self,
        message: str = "Referenced entity not found",
        *,
        entity_type: str | None = None,
        field: str | None = None,
        reference_id: str | None = None,
        operation: str | None = None,
    ):
        details = {"field": field, "reference_id": reference_id}
        super().__init__(
            message,
            entity_type=entity_type,
            operation=operation,
            details=details,
        )
        self.field = field
        self.reference_id = reference_id


class InvalidPayloadError(RegistryError):
    """
    Raised when a payload fails shape validation.

    Covers blank required strings, null or unknown enum values,
    missing required fields and out-of-range numbers.
    """

    def __init__(
        self,
        message: str = "Invalid payload",
        *,
        entity_type: str | None = None,
        validation_errors: list[str] | None = None,
        operation: str | None = None,
    ):
        details = {}
        if validation_errors:
            details["validation_errors"] = validation_errors
        super().__init__(
            message,
            entity_type=entity_type,
            operation=operation,
            details=details,
        )
        self.validation_errors = validation_errors or []


def format_exception(error: Exception) -> str:
    """
    Format an exception for user-friendly display.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, CourseBoardError):
        return str(error)
    return f"{error.__class__.__name__}: {error}"
