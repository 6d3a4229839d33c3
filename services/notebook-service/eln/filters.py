"""
Sanitization of titles, dates and bodies before they reach the database.

Bodies come from the rich-text editor and may contain HTML; only the
dangerous constructs (scripts, inline event handlers, javascript: URIs)
are removed so that formatting survives.
"""

import re
from datetime import date, datetime, timezone
from typing import Optional, Tuple

from .config import settings
from .domain.exceptions import ImproperActionException

DEFAULT_TITLE = "Untitled"
TITLE_MAX_LENGTH = 255
TERM_MAX_LENGTH = 200

# Period used when no lastchange period is given
FULL_PERIOD = "15000101-30000101"

TAG_PATTERN = re.compile(r"<[^>]*>")
SCRIPT_PATTERN = re.compile(r"<script[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
EVENT_HANDLER_PATTERN = re.compile(
    r"\s+on[a-z]+\s*=\s*(\"[^\"]*\"|'[^']*'|[^\s>]+)", re.IGNORECASE
)
JS_URI_PATTERN = re.compile(r"(href|src)\s*=\s*([\"'])\s*javascript:[^\"']*\2", re.IGNORECASE)
DATE_PATTERNS = ("%Y%m%d", "%Y-%m-%d")


def today() -> date:
    return datetime.now(timezone.utc).date()


def title(value: Optional[str]) -> str:
    """
    Sanitize a title.

    Tags and line breaks are removed. An empty result becomes 'Untitled'.
    """
    if value is None:
        return DEFAULT_TITLE
    cleaned = TAG_PATTERN.sub("", value)
    cleaned = re.sub(r"[\r\n\t]+", " ", cleaned).strip()
    if not cleaned:
        return DEFAULT_TITLE
    return cleaned[:TITLE_MAX_LENGTH]


def parse_date(value: str) -> Optional[date]:
    """Parse YYYYMMDD or YYYY-MM-DD, returning None if it is neither."""
    value = value.strip()
    for pattern in DATE_PATTERNS:
        try:
            return datetime.strptime(value, pattern).date()
        except ValueError:
            continue
    return None


def kdate(value: Optional[str]) -> date:
    """
    Sanitize an entity date.

    Returns:
        The parsed date, or today's date when the input is missing or invalid
    """
    if not value:
        return today()
    parsed = parse_date(value)
    return parsed or today()


def body(value: Optional[str]) -> str:
    """
    Sanitize an HTML body.

    Raises:
        ImproperActionException: If the body is larger than MAX_BODY_SIZE
    """
    if value is None:
        return ""
    if len(value) > settings.MAX_BODY_SIZE:
        raise ImproperActionException(
            "Content is too big! Cannot save!",
            details={"size": len(value), "max_size": settings.MAX_BODY_SIZE},
        )
    cleaned = SCRIPT_PATTERN.sub("", value)
    cleaned = EVENT_HANDLER_PATTERN.sub("", cleaned)
    cleaned = JS_URI_PATTERN.sub(r'\1=\2#\2', cleaned)
    return cleaned


def tag(value: str) -> str:
    """Sanitize a tag: no markup, no separator characters."""
    cleaned = TAG_PATTERN.sub("", value)
    cleaned = re.sub(r"[|\\]", "", cleaned)
    return cleaned.strip()[:TITLE_MAX_LENGTH]


def sanitize_term(value: str) -> str:
    """
    Normalize a search or autocomplete term.

    Args:
        value: Raw term from the request

    Returns:
        Trimmed term without markup or collapsed whitespace
    """
    cleaned = TAG_PATTERN.sub("", value).strip()[:TERM_MAX_LENGTH]
    return re.sub(r"\s+", " ", cleaned)


def parse_period(period: str) -> Tuple[date, date]:
    """
    Parse a 'YYYYMMDD-YYYYMMDD' period.

    An empty period covers every possible date. A single date is a one-day
    period.

    Raises:
        ImproperActionException: If a bound is not a valid date
    """
    if not period:
        period = FULL_PERIOD
    start_raw, _, end_raw = period.partition("-")
    if not end_raw:
        end_raw = start_raw
    start = parse_date(start_raw)
    end = parse_date(end_raw)
    if start is None or end is None:
        raise ImproperActionException(
            f"Invalid period: {period}", details={"field": "period", "value": period}
        )
    return start, end
