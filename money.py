from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[int, float, Decimal]

_RATIO_EPSILON = 0.000001


def quantize(value: Optional[Number], places: int = 2) -> float:
    if value is None:
        return 0.0
    try:
        dec = Decimal(str(value))
    except InvalidOperation:
        return 0.0
    if not dec.is_finite():
        return 0.0
    exponent = Decimal(1).scaleb(-places)
    return float(dec.quantize(exponent, rounding=ROUND_HALF_UP))


def money(value: Optional[Number]) -> float:
    return quantize(value, 2)


def safe_percent(numerator: float, denominator: Optional[float]) -> Optional[float]:
    """``numerator / denominator`` to 4 places, or None for a ~0 denominator."""
    if denominator is None or abs(denominator) <= _RATIO_EPSILON:
        return None
    return quantize(numerator / denominator, 4)


def format_currency(amount: float) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_percent(ratio: float) -> str:
    return f"{quantize(abs(ratio) * 100, 0):.0f}%"
