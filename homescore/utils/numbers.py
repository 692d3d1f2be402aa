from decimal import Decimal, ROUND_HALF_UP


def round_half_up(value: float, places: int = 0) -> float:
    """Round like a spreadsheet does (2.5 -> 3), not banker's rounding."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
