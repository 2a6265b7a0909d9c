"""
Centralized date/time utilities
All timestamps are handled as timezone-aware UTC datetimes
"""

from datetime import datetime, timezone, timedelta
from typing import Optional


def utc_now() -> datetime:
    """
    Get current datetime in UTC

    Returns:
        Current timezone-aware datetime
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize datetime to UTC

    Naive datetimes are interpreted as UTC.

    Args:
        value: Datetime to normalize

    Returns:
        Timezone-aware datetime in UTC
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """
    Format datetime for the API ("2024-11-05T09:30:00.000Z")

    Args:
        value: Datetime or None

    Returns:
        ISO 8601 string in UTC with millisecond precision, or None
    """
    if value is None:
        return None
    dt = ensure_utc(value)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def _humanize(delta: timedelta) -> str:
    seconds = int(abs(delta.total_seconds()))
    if seconds < 60:
        return "less than a minute"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes} min"
    hours = minutes // 60
    if hours < 48:
        return f"{hours} h"
    return f"{hours // 24} days"


def format_due(due_date: Optional[datetime], now: Optional[datetime] = None) -> str:
    """
    Describe due date relative to now

    Examples: "due in 30 min", "2 h overdue", "no due date"

    Args:
        due_date: Task due date
        now: Reference time (defaults to current time)

    Returns:
        Human-readable description
    """
    if due_date is None:
        return "no due date"
    if now is None:
        now = utc_now()
    delta = ensure_utc(due_date) - ensure_utc(now)
    if delta.total_seconds() <= 0:
        return f"{_humanize(delta)} overdue"
    return f"due in {_humanize(delta)}"
