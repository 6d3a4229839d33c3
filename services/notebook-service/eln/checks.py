"""
Validation of user-supplied values used in permission and category updates.
"""

import re
from typing import Any, Optional

from .domain.entities import Rw, Visibility
from .domain.exceptions import (
    ImproperActionException,
    InvalidRwException,
    InvalidVisibilityException,
)

COLOR_PATTERN = re.compile(r"^#?([0-9a-fA-F]{6})$")


def check_id(value: Any) -> Optional[int]:
    """
    Validate an id.

    Args:
        value: Candidate id (int or numeric string)

    Returns:
        The id as int, or None when it is not a positive integer
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        if not value.isdigit():
            return None
        value = int(value)
    if isinstance(value, int) and value > 0:
        return value
    return None


def check_visibility(value: str) -> str:
    """
    Validate a canread/canwrite value.

    Accepts a scope keyword or the id of a team group.

    Raises:
        InvalidVisibilityException: For anything else
    """
    if value in Visibility.values() or check_id(value) is not None:
        return value
    raise InvalidVisibilityException(value)


def check_rw(value: str) -> str:
    """Validate the read/write axis."""
    try:
        return Rw(value).value
    except ValueError:
        raise InvalidRwException(value)


def check_color(value: str) -> str:
    """
    Validate a hex color.

    Returns:
        Lowercase six-digit hex color without the leading '#'
    """
    match = COLOR_PATTERN.match(value.strip())
    if not match:
        raise ImproperActionException(
            f"Invalid color: {value}", details={"field": "color", "value": value}
        )
    return match.group(1).lower()
