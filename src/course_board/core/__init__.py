"""
Course Board Core Module.

Provides the exception hierarchy and the result types shared by
storage and registries.
"""

__all__ = [
    "EntityOperation",
    "ErrorKind",
    "RegistryFailure",
    "RegistryResult",
    "new_id",
    "utc_now",
    # Exceptions
    "CourseBoardError",
    "ConfigurationError",
    "StorageError",
    "RegistryError",
    "EntityNotFoundError",
    "DuplicateValueError",
    "ReferenceNotFoundError",
    "InvalidPayloadError",
    "format_exception",
]

from course_board.core.exceptions import (
    ConfigurationError,
    CourseBoardError,
    DuplicateValueError,
    EntityNotFoundError,
    InvalidPayloadError,
    ReferenceNotFoundError,
    RegistryError,
    StorageError,
    format_exception,
)
from course_board.core.models import (
    EntityOperation,
    ErrorKind,
    RegistryFailure,
    RegistryResult,
    new_id,
    utc_now,
)
