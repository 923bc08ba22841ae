"""This module defines the fixed-point money type used across the core.

All amounts are `Decimal` values with at most two decimal places. Values are
normalized to exactly two places so that `30`, `30.0` and `30.00` compare and
persist identically, and so that boundary checks against a ceiling never go
through binary floating point.
"""

from decimal import Decimal
from typing import Annotated, Any

from pydantic import AfterValidator, Field, TypeAdapter

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def _quantize(value: Decimal) -> Decimal:
    """Normalizes a validated decimal to exactly two decimal places.

    Args:
        value: A decimal already known to have at most two decimal places.

    Returns:
        The same amount with an exponent of -2.
    """
    return value.quantize(CENT)


Money = Annotated[Decimal, Field(max_digits=15, decimal_places=2), AfterValidator(_quantize)]
"""Any amount of money: zero, negative balances and credits included."""

PositiveMoney = Annotated[Decimal, Field(gt=0, max_digits=15, decimal_places=2), AfterValidator(_quantize)]
"""A strictly positive amount, as required for requests, approvals and postings."""

_positive_adapter: TypeAdapter[Decimal] = TypeAdapter(PositiveMoney)
_money_adapter: TypeAdapter[Decimal] = TypeAdapter(Money)


def to_money(value: Any) -> Decimal:
    """Validates and normalizes an arbitrary amount.

    Args:
        value: A Decimal, int, str or float amount.

    Returns:
        The amount as a two-place Decimal.

    Raises:
        pydantic.ValidationError: If the value is not a number with at most
            two decimal places.
    """
    return _money_adapter.validate_python(value)


def to_positive_money(value: Any) -> Decimal:
    """Validates and normalizes a strictly positive amount.

    Args:
        value: A Decimal, int, str or float amount.

    Returns:
        The amount as a two-place Decimal.

    Raises:
        pydantic.ValidationError: If the value is not positive or has more
            than two decimal places.
    """
    return _positive_adapter.validate_python(value)
