import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, not 2)."""
    floor = math.floor(value)
    return floor + 1 if value - floor >= 0.5 else floor
