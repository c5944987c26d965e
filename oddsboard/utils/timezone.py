"""Timezone and display-time utilities"""
from datetime import datetime
from typing import Any, Optional
import pytz

PLACEHOLDER_TIME = "TBD"


def parse_event_date(value: Any, tz: Optional[str] = None) -> Optional[datetime]:
    """
    Parse an upstream ISO-ish date string.

    Args:
        value: Raw date value from the feed
        tz: Optional timezone string used for naive timestamps

    Returns:
        Datetime object, or None if the value cannot be parsed
    """
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"

    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None

    if dt.tzinfo is None and tz:
        # Naive timestamps are read as wall-clock time in the display zone
        dt = pytz.timezone(tz).localize(dt)

    return dt


def to_display_tz(dt: datetime, tz: Optional[str] = None) -> datetime:
    """
    Convert a datetime to the viewer's timezone.

    Args:
        dt: Datetime object (naive or timezone-aware)
        tz: Optional timezone string (e.g., 'Europe/London').
            If omitted, the system local timezone is used.

    Returns:
        Datetime object in the display timezone
    """
    if tz:
        tz_obj = pytz.timezone(tz)
        if dt.tzinfo is None:
            return tz_obj.localize(dt)
        return dt.astimezone(tz_obj)

    if dt.tzinfo is None:
        return dt
    return dt.astimezone()


def format_display_time(value: Any, tz: Optional[str] = None) -> str:
    """
    Format an upstream date as 'HH:MM Wkd MM/DD'.

    Returns:
        Display string, or 'TBD' when the date cannot be parsed
    """
    dt = parse_event_date(value, tz)
    if dt is None:
        return PLACEHOLDER_TIME

    local = to_display_tz(dt, tz)
    return local.strftime("%H:%M %a %m/%d")


def now_iso() -> str:
    """Get current UTC time as an ISO-8601 string"""
    return datetime.now(pytz.UTC).isoformat()
