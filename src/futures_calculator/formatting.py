"""Rounding and display formatting.

Rounding happens only at output boundaries; calculators keep full
float precision internally.
"""

import math
from decimal import ROUND_HALF_UP, Decimal


def round_half_away(value: float, decimals: int = 2) -> float:
    """Round to ``decimals`` places, halves away from zero.

    Uses the shortest repr of the float so ``1.005`` rounds to ``1.01``.
    Non-finite values are returned unchanged.
    """
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-decimals)
    rounded = float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))
    # Normalize -0.0
    return rounded + 0.0


def format_number(value: float, decimals: int = 4) -> str:
    if not math.isfinite(value):
        return "0"
    return f"{round_half_away(value, decimals):.{decimals}f}"


def format_percentage(value: float, decimals: int = 2) -> str:
    """Format a value already expressed in percent, e.g. 12.5 -> '12.50%'."""
    if not math.isfinite(value):
        return f"{0:.{decimals}f}%"
    return f"{round_half_away(value, decimals):.{decimals}f}%"


def format_fraction(value: float, decimals: int = 2) -> str:
    """Format a 0-1 fraction as percent, e.g. 0.125 -> '12.50%'."""
    if not math.isfinite(value):
        return f"{0:.{decimals}f}%"
    return format_percentage(value * 100, decimals)
