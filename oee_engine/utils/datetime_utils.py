"""
Timestamp helpers.

Every timestamp entering the engine must carry an explicit UTC offset. The
ledger itself only works with durations, so no zone logic happens past this
module.
"""

from datetime import datetime
from typing import Optional


def ensure_offset_aware(value: Optional[datetime], field_name: str = "timestamp") -> Optional[datetime]:
    """
    Reject naive datetimes.

    Raises:
        ValueError: If value has no UTC offset
    """
    if value is None:
        return None
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValueError(f"{field_name} must carry a UTC offset: {value.isoformat()}")
    return value


def offset_datetime_from_string(timestamp: str) -> datetime:
    """Parse an ISO-8601 timestamp with offset; a space may replace the 'T'.

    Args:
        timestamp: e.g. "2024-03-01T06:00:00+01:00" or "2024-03-01 06:00:00Z"

    Returns:
        Offset-aware datetime

    Raises:
        ValueError: If the string is empty, malformed or has no offset
    """
    if not timestamp or not timestamp.strip():
        raise ValueError("Empty timestamp")

    text = timestamp.strip()
    if 'T' not in text and ' ' in text:
        date_part, time_part = text.split(' ', 1)
        text = f"{date_part}T{time_part.strip()}"
    if text.endswith('Z') or text.endswith('z'):
        text = text[:-1] + '+00:00'

    return ensure_offset_aware(datetime.fromisoformat(text), timestamp)


def offset_datetime_to_string(value: datetime) -> str:
    """Format an offset-aware datetime as ISO-8601 with offset."""
    return ensure_offset_aware(value).isoformat()
