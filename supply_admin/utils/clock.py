"""
Timestamp helpers.

All timestamps are ISO-8601 strings with the local UTC offset.
"""

from datetime import datetime, timedelta
from typing import Optional


def now_iso() -> str:
    """Current local time as an ISO-8601 string (millisecond precision)."""
    return datetime.now().astimezone().isoformat(timespec="milliseconds")


def parse_iso(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 string; None when it is empty or malformed."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def advance_timestamp(previous: Optional[str]) -> str:
    """
    Return a timestamp strictly later than ``previous``.

    Two updates inside the same millisecond would otherwise share a value.
    """
    current = datetime.now().astimezone()
    # Compare at the precision that gets serialized
    current = current.replace(microsecond=current.microsecond // 1000 * 1000)
    last = parse_iso(previous) if previous else None
    if last is not None and current <= last:
        current = last + timedelta(milliseconds=1)
    return current.isoformat(timespec="milliseconds")
