"""Utility functions for time handling.

All timestamps should be UTC and timezone-aware. Persist UTC timestamps as
ISO-8601 strings with timezone offsets (e.g., "+00:00").
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def utc_now() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def to_millis(dt: datetime) -> float:
    """Milliseconds since the epoch, used by the relay window clock."""
    return dt.timestamp() * 1000.0


def format_clock(dt: datetime | None, placeholder: str = "TBD") -> str:
    """Short local wall-clock rendering for status log lines."""
    if dt is None:
        return placeholder
    return dt.astimezone().strftime("%I:%M:%S %p")


def coerce_datetime(value: Any) -> datetime | None:
    """
    Coerce value to datetime, returning None on failure.

    Accepts aware/naive datetimes, ISO-8601 strings and epoch milliseconds
    (the format of older session documents).

    Returns:
        Datetime in timezone.utc or None if invalid
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, bool):
        return None
    elif isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
