"""Total accessors for opaque backend records.

Every helper returns None for a missing or malformed value instead of
raising, so callers can treat "absent" and "garbage" the same way.
"""

import math
from collections.abc import Iterable
from datetime import date, datetime, timezone
from typing import Any

from matchview.core.schemas import Record


def get_number(record: Record, key: str) -> float | None:
    """Read ``key`` as a finite float. Booleans are not numbers here."""
    value = record.get(key)
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def get_text(record: Record, key: str) -> str | None:
    value = record.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def get_strings(record: Record, key: str) -> list[str] | None:
    """Read ``key`` as a list of strings; a comma-joined string is split."""
    value = record.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, Iterable) and not isinstance(value, (bytes, dict)):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    return None


def get_datetime(record: Record, key: str) -> datetime | None:
    """Parse ``key`` into an aware UTC datetime.

    Accepts datetime/date objects, ISO-8601 strings (with or without a
    trailing ``Z``) and epoch seconds.
    """
    return parse_datetime(record.get(key))


def parse_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def is_truthy(record: Record, key: str) -> bool:
    """Flag-style field: missing counts as False."""
    value = record.get(key)
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y")
    return bool(value)
