"""Fixed-point money helpers.

Every amount in the library is a ``Decimal`` quantized to cents with a single
rounding rule. Binary floats are accepted on input only through their string
form, so ``0.1`` becomes ``Decimal("0.1")`` rather than its binary expansion.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Union

from waterfall.errors import InvalidInput

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
ROUNDING = ROUND_HALF_UP

AmountLike = Union[Decimal, int, float, str]


def to_decimal(value: AmountLike) -> Decimal:
    """Read an amount without passing through binary floating point."""
    if isinstance(value, bool):
        raise InvalidInput(f"Unsupported amount: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value.strip() if isinstance(value, str) else value)
        except InvalidOperation as exc:
            raise InvalidInput(f"Unsupported amount: {value!r}") from exc
    elif isinstance(value, float):
        result = Decimal(repr(value))
    else:
        raise InvalidInput(f"Unsupported amount type: {type(value)}")
    if not result.is_finite():
        raise InvalidInput(f"Amount must be finite: {value!r}")
    return result


def quantize(value: AmountLike) -> Decimal:
    """Round to cents with the library-wide rounding rule."""
    return to_decimal(value).quantize(CENT, rounding=ROUNDING)


def to_cents(value: AmountLike) -> Decimal:
    """Read an amount that must already be a whole number of cents.

    Raises:
        InvalidInput: If the amount carries a fraction of a cent
    """
    amount = to_decimal(value)
    cents = amount.quantize(CENT, rounding=ROUNDING)
    if cents != amount:
        raise InvalidInput(f"Amount must be a whole number of cents, got {value!r}")
    return cents


def money_sum(values: Iterable[Decimal]) -> Decimal:
    """Exact sum of amounts, quantized; an empty iterable sums to 0.00."""
    return quantize(sum(values, Decimal(0)))


def format_amount(value: Decimal) -> str:
    """Two-decimal text form used in memos and CSV output."""
    return f"{quantize(value):.2f}"
