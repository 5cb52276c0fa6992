"""Utility functions for SeriesScope"""
from pint import UnitRegistry

# Initialize Pint unit registry
ureg = UnitRegistry()


def format_time_auto(time_quantity, precision=4) -> str:
    """
    Automatically format a duration with an appropriate unit for readability.

    For example:
        - 0.000001 s -> "1 µs"
        - 2.5 s -> "2.5 s"
        - 7200 s -> "2 h"

    Args:
        time_quantity: Pint Quantity in time units, or float (assumed seconds)
        precision: Number of significant figures (default: 4)

    Returns:
        str: Formatted time string like "2.543 ms" or "1.5 d"
    """
    if not isinstance(time_quantity, ureg.Quantity):
        time_quantity = time_quantity * ureg.second

    seconds = abs(time_quantity.to(ureg.second).magnitude)

    if seconds == 0:
        unit, label = ureg.second, "s"
    elif seconds < 1e-6:
        unit, label = ureg.nanosecond, "ns"
    elif seconds < 1e-3:
        unit, label = ureg.microsecond, "µs"
    elif seconds < 1:
        unit, label = ureg.millisecond, "ms"
    elif seconds < 60:
        unit, label = ureg.second, "s"
    elif seconds < 3600:
        unit, label = ureg.minute, "min"
    elif seconds < 86400:
        unit, label = ureg.hour, "h"
    else:
        unit, label = ureg.day, "d"

    formatted = time_quantity.to(unit)
    return f"{formatted.magnitude:.{precision}g} {label}"


def format_value(value: float) -> str:
    """
    Format a channel value (or value difference) for display.

    Uses scientific notation for very small/large magnitudes and four
    decimals otherwise.
    """
    magnitude = abs(value)
    if magnitude != 0 and (magnitude < 0.001 or magnitude > 1e9):
        return f"{value:.3e}"
    return f"{value:.4f}"


def parse_number(raw) -> float:
    """
    Convert a raw field into a float, returning NaN for null or text.

    Args:
        raw: Field as stored in a RawRow (str, number or None)

    Returns:
        float value, or NaN when the field is empty or not numeric
    """
    if raw is None or isinstance(raw, bool):
        return float("nan")
    if isinstance(raw, (int, float)):
        return float(raw)
    text = raw.strip()
    if not text:
        return float("nan")
    try:
        return float(text)
    except ValueError:
        return float("nan")
