"""
Fixed-point money helpers

All currency math goes through Decimal and is rounded half-up to two places
after every multiply or divide.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable

from billing.core.exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def round2(value: Decimal) -> Decimal:
    """Round half-up to 2 decimal places"""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """
    Convert a number to Decimal without rounding

    Floats go through str() so binary noise is not carried over.

    Raises:
        ValidationError: Value is not a finite number
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number", details={"field": field, "value": value})

    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, float):
            result = Decimal(str(value))
        else:
            result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(
            f"{field} must be a number",
            details={"field": field, "value": str(value)}
        )

    if not result.is_finite():
        raise ValidationError(f"{field} must be finite", details={"field": field, "value": str(value)})

    return result


def to_money(value: Any, field: str = "amount") -> Decimal:
    """
    Convert a number to a 2-place money value

    Args:
        value: int, str, float or Decimal
        field: Field name used in the error message

    Returns:
        Decimal rounded half-up to 2 places

    Raises:
        ValidationError: Value is not a number
    """
    return round2(to_decimal(value, field))


def to_exact_money(value: Any, field: str = "amount") -> Decimal:
    """
    Convert a number that must already be whole cents

    Unlike to_money nothing is rounded: 112.404 is an error, not 112.40.

    Raises:
        ValidationError: Value is not a number or has more than 2 decimals
    """
    result = to_decimal(value, field)
    if result != round2(result):
        raise ValidationError(
            f"{field} cannot have more than 2 decimal places",
            details={"field": field, "value": str(result)}
        )
    return round2(result)


def percent_of(base: Decimal, pct: Decimal) -> Decimal:
    """round2(base * pct / 100)"""
    return round2(base * pct / HUNDRED)


def validate_percent(value: Any, field: str = "percent") -> Decimal:
    """
    Check that a percentage is in [0, 100]

    Raises:
        ValidationError: Percentage is outside [0, 100]
    """
    pct = to_decimal(value, field)
    if pct < 0 or pct > HUNDRED:
        raise ValidationError(
            f"{field} must be between 0 and 100",
            details={"field": field, "value": str(pct)}
        )
    return pct


def money_sum(values: Iterable[Decimal]) -> Decimal:
    """Sum money values, starting from 0.00"""
    return round2(sum(values, ZERO))
