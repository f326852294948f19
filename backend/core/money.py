# backend/core/money.py

"""
Fixed-point money helpers shared by the commission and proration engines.

All amounts are Decimal with two places. Rounding is half away from
zero (ROUND_HALF_UP on Decimal) and is applied once per computed value.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated, Union

from pydantic import BeforeValidator

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

MoneyInput = Union[Decimal, int, str]


def to_decimal(value: MoneyInput) -> Decimal:
    """Coerce integers and decimal strings to Decimal; floats are refused."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"Money must be Decimal, int or str, not {type(value).__name__}")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Not a decimal amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Not a finite amount: {value!r}")
    return amount


def round_money(value: MoneyInput) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def exceeds_scale(value: Decimal, places: int) -> bool:
    """True when ``value`` has more decimal places than a column of that scale stores"""
    return value != value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def _reject_float(value):
    if isinstance(value, float):
        raise ValueError("monetary values must be sent as decimal strings or integers")
    return value


# Request/response field type: parsed from strings or ints, serialised as a string
Money = Annotated[Decimal, BeforeValidator(_reject_float)]
