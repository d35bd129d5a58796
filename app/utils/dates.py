"""
Club wall-clock helpers.

All stored timestamps are naive local times in settings.TIMEZONE. Day markers
are the canonical "YYYY/MM/DD" strings used to scope reconciliation and
reports; query input and hand-edited rows may use "-" or "." separators or
omit zero padding, so stored markers are normalized before every comparison.
"""

import re
from datetime import date, datetime
from typing import Optional, Union
from zoneinfo import ZoneInfo

from app.config import settings
from app.exceptions import InvalidInput

DAY_MARKER_FORMAT = "%Y/%m/%d"
TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"
TIME_FORMAT = "%H:%M:%S"

_DAY_RE = re.compile(r"^\s*(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})\s*$")


def local_now() -> datetime:
    """Current club wall-clock time, naive."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None, microsecond=0)


def day_marker(value: Union[date, datetime]) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime(DAY_MARKER_FORMAT)


def normalize_day_marker(value: Union[str, date, datetime, None]) -> str:
    """
    Map any accepted day representation to "YYYY/MM/DD".
    Both the query date and the stored marker go through here before comparing.
    """
    if isinstance(value, (date, datetime)):
        return day_marker(value)
    if not isinstance(value, str):
        raise InvalidInput(f"Invalid date: {value!r}")
    match = _DAY_RE.match(value)
    if not match:
        raise InvalidInput(f"Invalid date: {value!r}")
    try:
        parsed = date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        raise InvalidInput(f"Invalid date: {value!r}")
    return day_marker(parsed)


def same_day(stored: Union[str, date, None], canonical: str) -> bool:
    """Compare a stored marker against a canonical one; unreadable markers never match."""
    try:
        return normalize_day_marker(stored) == canonical
    except InvalidInput:
        return False


def canonical_day_marker(value: Union[str, date, None]) -> Optional[str]:
    """Canonical marker for storage; an unreadable marker is kept as written."""
    try:
        return normalize_day_marker(value)
    except InvalidInput:
        return value


def format_timestamp(value: Optional[datetime]) -> str:
    return value.strftime(TIMESTAMP_FORMAT) if value else ""


def format_time(value: Optional[datetime]) -> str:
    return value.strftime(TIME_FORMAT) if value else ""


def format_day(value: Optional[date]) -> str:
    return value.strftime(DAY_MARKER_FORMAT) if value else ""
