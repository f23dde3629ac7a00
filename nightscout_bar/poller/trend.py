"""Mapping of Nightscout direction codes to arrow glyphs."""

from typing import Optional

UNKNOWN_TREND = "?"

TREND_ARROWS = {
    "Flat": "→",
    "SingleUp": "↑",
    "DoubleUp": "↑↑",
    "DoubleDown": "↓↓",
    "SingleDown": "↓",
    "FortyFiveDown": "↘",
    "FortyFiveUp": "↗",
}


def arrow_for(direction: Optional[str]) -> str:
    """Return the arrow for a direction code, or '?' if absent or unknown."""
    if direction is None:
        return UNKNOWN_TREND
    return TREND_ARROWS.get(direction, UNKNOWN_TREND)
