"""Decimal helpers shared by the pricing services."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Any) -> Decimal:
    """
    Convert a numeric input to Decimal without binary float artifacts.

    Floats go through their shortest repr, so 8.67 becomes Decimal("8.67")
    rather than Decimal(8.67000000000000037...).

    Args:
        value: int, float, str or Decimal

    Returns:
        Decimal value (may be NaN or infinite; callers validate)

    Raises:
        TypeError: If value is not a numeric type (booleans included)
        ValueError: If a string cannot be parsed as a number
    """
    if isinstance(value, bool):
        raise TypeError("Boolean is not a monetary value")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value))
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation as e:
            raise ValueError(f"Not a number: {value!r}") from e
    raise TypeError(f"Unsupported numeric type: {type(value).__name__}")


def round_money(value: Decimal) -> Decimal:
    """Round half away from zero to the currency minor unit (2 dp)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def require_positive(value: Any, error_cls: type[Exception], field: str) -> Decimal:
    """
    Parse value and require a finite number strictly greater than zero.

    Args:
        value: Raw numeric input
        error_cls: PricingError subclass to raise on failure
        field: Field name reported in the error details

    Returns:
        The parsed Decimal
    """
    amount = _parse(value, error_cls, field)
    if amount <= ZERO:
        raise error_cls(
            f"{field} must be positive, received: {value}",
            details={"field": field, "value": str(value)},
        )
    return amount


def require_non_negative(value: Any, error_cls: type[Exception], field: str) -> Decimal:
    """Parse value and require a finite number greater than or equal to zero."""
    amount = _parse(value, error_cls, field)
    if amount < ZERO:
        raise error_cls(
            f"{field} must not be negative, received: {value}",
            details={"field": field, "value": str(value)},
        )
    return amount


def _parse(value: Any, error_cls: type[Exception], field: str) -> Decimal:
    try:
        amount = to_decimal(value)
    except (TypeError, ValueError) as e:
        raise error_cls(
            f"{field} must be a number, received: {value!r}",
            details={"field": field, "value": repr(value)},
        ) from e
    if not amount.is_finite():
        raise error_cls(
            f"{field} must be finite, received: {value}",
            details={"field": field, "value": str(value)},
        )
    return amount
