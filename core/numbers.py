"""Decimal rounding helpers.

Python's `round` uses banker's rounding on binary floats (`round(2.675, 2)`
gives 2.67); nutrition values and prices are rounded half-up on the decimal
representation instead.
"""

from decimal import Context, Decimal, ROUND_CEILING, ROUND_HALF_UP
from typing import Iterable, Optional, Union

Number = Union[int, float, Decimal]

# wide enough to quantize any finite float to cents
_CONTEXT = Context(prec=400)


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # 12 places drops float noise such as 0.30000000000000004
    return Decimal(repr(round(float(value), 12)))


def round_half_up(value: Optional[Number], digits: int = 0):
    """Round half-up; returns an int for `digits == 0`, else a float. None passes through."""
    if value is None:
        return None
    exp = Decimal(1).scaleb(-digits)
    rounded = to_decimal(value).quantize(exp, rounding=ROUND_HALF_UP, context=_CONTEXT)
    return int(rounded) if digits == 0 else float(rounded)


def ceil_cents(value: Number) -> float:
    """Round up to two decimals (quantities on a shopping list)."""
    return float(to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_CEILING, context=_CONTEXT))


def round_cents(value: Number) -> Decimal:
    return to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP, context=_CONTEXT)


def sum_cents(amounts: Iterable[Number]) -> float:
    """Round each amount to cents first, then add them up."""
    return float(sum((round_cents(a) for a in amounts), Decimal("0.00")))
