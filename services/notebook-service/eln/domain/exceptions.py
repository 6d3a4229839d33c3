"""
Custom exceptions for the notebook domain.

These exceptions represent domain-level errors and are independent
of infrastructure concerns (HTTP, database, etc.). The application
layer maps each of them to an HTTP status code.
"""

from typing import Any, Optional


class ElnException(Exception):
    """Base exception for all notebook service errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class IllegalActionException(ElnException):
    """Raised when a user tries to do something they are not allowed to do."""

    def __init__(
        self,
        message: str = "This section is out of your reach!",
        details: Optional[dict] = None,
    ):
        super().__init__(message=message, details=details)


class ImproperActionException(ElnException):
    """Raised when an action is allowed in principle but invalid right now."""


class ResourceNotFoundException(ElnException):
    """Raised when an entity, category or group cannot be found."""

    def __init__(self, resource: str = "entity", identifier: Any = None):
        message = "Nothing to show with this id"
        if identifier is not None:
            message = f"No {resource} found with id {identifier}"
        super().__init__(
            message=message, details={"resource": resource, "id": identifier}
        )


class DatabaseErrorException(ElnException):
    """Raised when a database statement fails unexpectedly."""

    def __init__(self, operation: str, reason: Optional[str] = None):
        message = f"Database error during {operation}"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message, details={"operation": operation, "reason": reason}
        )


class InvalidVisibilityException(ImproperActionException):
    """Raised when a visibility value is neither a scope nor a team group id."""

    def __init__(self, value: Any):
        super().__init__(
            message=f"Invalid visibility value: {value}",
            details={"field": "visibility", "value": str(value)},
        )


class InvalidRwException(ImproperActionException):
    """Raised when the read/write axis is not 'read' or 'write'."""

    def __init__(self, value: Any):
        super().__init__(
            message=f"Invalid rw value: {value}",
            details={"field": "rw", "value": str(value)},
        )
