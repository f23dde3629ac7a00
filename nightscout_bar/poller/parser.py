"""Decoding of the Nightscout entries.json response body."""

import json
import logging
import math
from typing import Any, Optional

from nightscout_bar.shared.models import Reading

from .errors import DecodeError, EmptyBodyError, NoEntriesError

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_entry(entry: Any) -> Reading:
    """Turn one decoded entry object into a Reading.

    Raises:
        DecodeError: If the entry is not an object or lacks sgv/dateString.
    """
    if not isinstance(entry, dict):
        raise DecodeError(f"expected an entry object, got {type(entry).__name__}")

    sgv = entry.get("sgv")
    if sgv is None:
        raise DecodeError("entry is missing required field 'sgv'")
    if not _is_number(sgv):
        raise DecodeError(f"field 'sgv' must be a number, got {sgv!r}")
    # json accepts NaN, Infinity and integers too large for a float
    try:
        value = float(sgv)
    except OverflowError:
        value = math.inf
    if not math.isfinite(value):
        raise DecodeError(f"field 'sgv' must be a finite number, got {sgv!r}")

    date_string = entry.get("dateString")
    if date_string is None:
        raise DecodeError("entry is missing required field 'dateString'")
    if not isinstance(date_string, str):
        raise DecodeError(f"field 'dateString' must be a string, got {date_string!r}")

    # direction is optional and anything that isn't a string counts as absent
    direction: Optional[str] = entry.get("direction")
    if direction is not None and not isinstance(direction, str):
        logger.debug(f"Ignoring non-string direction {direction!r}")
        direction = None

    return Reading(value=value, direction=direction, server_timestamp=date_string)


def parse_entries(body: Optional[bytes]) -> Reading:
    """Parse a response body and return its first entry.

    Args:
        body: Raw response bytes, expected to hold a JSON array of entries.

    Returns:
        The first entry as a Reading.

    Raises:
        EmptyBodyError: If the body is missing or blank.
        DecodeError: If the body is not valid JSON or has the wrong shape.
        NoEntriesError: If the array is empty.
    """
    if body is None or not body.strip():
        raise EmptyBodyError()

    try:
        data = json.loads(body)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError, UnicodeDecodeError and the int digit limit are ValueErrors
        raise DecodeError(str(e)) from e

    if not isinstance(data, list):
        raise DecodeError(f"expected a JSON array of entries, got {type(data).__name__}")

    if not data:
        raise NoEntriesError()

    return parse_entry(data[0])
