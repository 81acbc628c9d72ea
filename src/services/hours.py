"""
Hour arithmetic shared by the normalizer, fillers, borrower and edit flow.
"""

import math

from core.config import HOUR_INCREMENT


def round_to_increment(hours: float, increment: float = HOUR_INCREMENT) -> float:
    """Round to the nearest increment, halves rounding up (2.125 -> 2.25)."""
    return math.floor(hours / increment + 0.5) * increment


def floor_to_increment(hours: float, increment: float = HOUR_INCREMENT) -> float:
    # Small epsilon so 0.75 / 0.25 style quotients that land on 2.9999999 still floor to 3
    return math.floor(hours / increment + 1e-9) * increment


def round_within(hours: float, cap: float, increment: float = HOUR_INCREMENT) -> float:
    """Nearest increment, but never above cap."""
    rounded = round_to_increment(hours, increment)
    if rounded > cap + 1e-9:
        return floor_to_increment(cap, increment)
    return rounded


def total_hours(values) -> float:
    return math.fsum(values)
