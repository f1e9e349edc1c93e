from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

TOMAN = "T"

Number = Union[int, float, Decimal]


def to_rial(amount: Number, currency: str | None) -> Number:
    """Convert an amount in the configured unit to Rial (1 Toman = 10 Rial)."""
    value = amount * 10 if currency == TOMAN else amount
    if isinstance(value, Decimal):
        # json cannot encode Decimal
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def rials(amount: Number) -> str:
    d = Decimal(str(amount)).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    s = f"{d:,}"
    return f"{s} ریال"
