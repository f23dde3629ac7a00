"""Staleness of the latest reading relative to the time it was received."""

import re
from datetime import datetime, timezone, tzinfo
from typing import Optional

from .errors import TimestampParseError

# Readings older than six minutes are flagged
STALE_AFTER_SECONDS = 360

_FRACTION = re.compile(r"\.(\d+)")
_COMPACT_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")


def parse_server_timestamp(value: str) -> datetime:
    """Parse a Nightscout dateString into an aware datetime.

    Accepts ISO-8601 with or without fractional seconds and with a 'Z' or
    numeric offset. Timestamps without an offset are taken as UTC.

    Raises:
        TimestampParseError: If the string is not ISO-8601.
    """
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise TimestampParseError(value)

    if text[-1] in "Zz":
        text = text[:-1] + "+00:00"
    text = _COMPACT_OFFSET.sub(r"\1:\2", text)
    # fromisoformat on older interpreters only takes 3 or 6 fractional digits
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise TimestampParseError(value) from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def staleness_suffix(
    server_time: datetime,
    now: datetime,
    stale_after: float = STALE_AFTER_SECONDS,
    tz: Optional[tzinfo] = None,
) -> str:
    """Return '' for a fresh reading, else ' [HH:MM]' in local time.

    The boundary is inclusive: exactly stale_after seconds is still fresh.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    age = abs((now - server_time).total_seconds())
    if age <= stale_after:
        return ""
    return f" [{server_time.astimezone(tz).strftime('%H:%M')}]"


def evaluate_staleness(
    server_timestamp: str,
    now: datetime,
    stale_after: float = STALE_AFTER_SECONDS,
    tz: Optional[tzinfo] = None,
) -> str:
    """Parse a dateString and return its staleness suffix.

    Raises:
        TimestampParseError: If the timestamp cannot be parsed, or is too
            close to the datetime range limits to convert to local time.
    """
    server_time = parse_server_timestamp(server_timestamp)
    try:
        return staleness_suffix(server_time, now, stale_after, tz)
    except (OverflowError, ValueError) as e:
        raise TimestampParseError(server_timestamp) from e
