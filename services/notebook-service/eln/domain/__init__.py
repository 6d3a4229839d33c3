"""Domain layer: value objects and exceptions."""

from .entities import (
    FULL_ACCESS,
    NO_ACCESS,
    READ_ONLY,
    Access,
    EntityType,
    Rw,
    UserContext,
    Visibility,
)
from .exceptions import (
    DatabaseErrorException,
    ElnException,
    IllegalActionException,
    ImproperActionException,
    InvalidRwException,
    InvalidVisibilityException,
    ResourceNotFoundException,
)

__all__ = [
    "Access",
    "EntityType",
    "FULL_ACCESS",
    "NO_ACCESS",
    "READ_ONLY",
    "Rw",
    "UserContext",
    "Visibility",
    "DatabaseErrorException",
    "ElnException",
    "IllegalActionException",
    "ImproperActionException",
    "InvalidRwException",
    "InvalidVisibilityException",
    "ResourceNotFoundException",
]
