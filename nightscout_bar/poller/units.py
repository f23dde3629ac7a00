"""Glucose unit conversion and formatting."""

# mg/dL per mmol/L; every conversion goes through this one factor
MMOL_TO_MGDL = 18.0182


def mgdl_to_mmol(value: float) -> float:
    return value / MMOL_TO_MGDL


def mmol_to_mgdl(value: float) -> float:
    return value * MMOL_TO_MGDL


def convert_glucose(value: float, display_in_mmol: bool, server_reports_in_mmol: bool) -> float:
    """Convert a server reading into the unit the user wants displayed.

    Args:
        value: Raw value as reported by the server.
        display_in_mmol: Whether values are shown in mmol/L.
        server_reports_in_mmol: Whether the server reports mmol/L.

    Returns:
        Value in the display unit.
    """
    if display_in_mmol == server_reports_in_mmol:
        return float(value)
    if display_in_mmol:
        return mgdl_to_mmol(value)
    return mmol_to_mgdl(value)


def format_glucose(value: float, in_mmol: bool) -> str:
    """Format a display value: one decimal in mmol/L, whole number in mg/dL."""
    if in_mmol:
        return f"{value:.1f}"
    return str(int(round(value)))


def unit_label(in_mmol: bool) -> str:
    return "mmol/L" if in_mmol else "mg/dL"
