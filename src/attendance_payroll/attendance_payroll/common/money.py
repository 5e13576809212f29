from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[int, float, Decimal]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Number) -> int:
    """Round to the nearest whole currency unit, halves away from zero."""
    return int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def prorate(amount: Number, days: Number, month_days: int) -> int:
    """Linear proration ``amount / month_days * days``, rounded once."""
    if month_days <= 0:
        return 0
    return round_money(to_decimal(amount) * to_decimal(days) / Decimal(month_days))


def round_hours(value: Number) -> float:
    return float(to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
