"""Input Validation Utilities.

Reusable validators for common futures-trading inputs:
leverage, prices, quantities, rates, and bounded ranges.
"""

import math
from typing import Optional

from src.calc_errors.config import ErrorCode
from src.calc_errors.exceptions import ValidationError

# Hard ceiling accepted by any calculator; UI limits are tighter.
MAX_LEVERAGE = 1000.0


def _require_number(value: float, field: str, error_code: ErrorCode) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(
            message=f"{field} must be a number",
            error_code=error_code,
            field=field,
        )
    if not math.isfinite(value):
        raise ValidationError(
            message=f"{field} must be a finite number",
            error_code=error_code,
            field=field,
        )
    return float(value)


def validate_leverage(
    leverage: float,
    max_leverage: float = MAX_LEVERAGE,
    field: str = "leverage",
) -> float:
    """Validate a leverage multiplier.

    Args:
        leverage: The leverage to validate.
        max_leverage: Maximum allowed leverage.
        field: Field name reported on failure.

    Returns:
        The validated leverage.

    Raises:
        ValidationError: If leverage is not in (0, max_leverage].
    """
    leverage = _require_number(leverage, field, ErrorCode.INVALID_LEVERAGE)

    if leverage <= 0:
        raise ValidationError(
            message="Leverage must be greater than 0",
            error_code=ErrorCode.INVALID_LEVERAGE,
            field=field,
        )

    if leverage > max_leverage:
        raise ValidationError(
            message=f"Leverage {leverage:g}x exceeds maximum of {max_leverage:g}x",
            error_code=ErrorCode.INVALID_LEVERAGE,
            field=field,
        )

    return leverage


def validate_price(price: float, field: str = "price") -> float:
    """Validate a price (must be positive).

    Raises:
        ValidationError: If the price is not a positive finite number.
    """
    price = _require_number(price, field, ErrorCode.INVALID_PRICE)

    if price <= 0:
        raise ValidationError(
            message=f"{field} must be greater than 0",
            error_code=ErrorCode.INVALID_PRICE,
            field=field,
        )

    return price


def validate_quantity(
    quantity: float,
    field: str = "quantity",
    allow_zero: bool = True,
) -> float:
    """Validate a quantity.

    Args:
        quantity: The quantity to validate.
        field: Field name reported on failure.
        allow_zero: Whether zero is accepted.

    Returns:
        The validated quantity.

    Raises:
        ValidationError: If the quantity is negative (or zero when disallowed).
    """
    quantity = _require_number(quantity, field, ErrorCode.INVALID_QUANTITY)

    if quantity < 0 or (quantity == 0 and not allow_zero):
        bound = "0 or greater" if allow_zero else "greater than 0"
        raise ValidationError(
            message=f"{field} must be {bound}",
            error_code=ErrorCode.INVALID_QUANTITY,
            field=field,
        )

    return quantity


def validate_rate(
    rate: float,
    field: str = "rate",
    min_rate: Optional[float] = 0.0,
    max_rate: Optional[float] = None,
) -> float:
    """Validate a percentage rate against optional inclusive bounds.

    Raises:
        ValidationError: If the rate falls outside [min_rate, max_rate].
    """
    rate = _require_number(rate, field, ErrorCode.INVALID_RATE)

    if min_rate is not None and rate < min_rate:
        message = (
            f"{field} must not be negative"
            if min_rate == 0
            else f"{field} must not be below {min_rate:g}%"
        )
        raise ValidationError(message=message, error_code=ErrorCode.INVALID_RATE, field=field)

    if max_rate is not None and rate > max_rate:
        raise ValidationError(
            message=f"{field} must not exceed {max_rate:g}%",
            error_code=ErrorCode.INVALID_RATE,
            field=field,
        )

    return rate


def validate_range(
    value: float,
    field: str,
    min_value: float,
    max_value: float,
    min_inclusive: bool = True,
    max_inclusive: bool = True,
) -> float:
    """Validate that a value lies inside a (possibly open) interval.

    Raises:
        ValidationError: If the value is outside the interval.
    """
    value = _require_number(value, field, ErrorCode.OUT_OF_RANGE)

    below = value < min_value if min_inclusive else value <= min_value
    above = value > max_value if max_inclusive else value >= max_value
    if below or above:
        left = "[" if min_inclusive else "("
        right = "]" if max_inclusive else ")"
        raise ValidationError(
            message=f"{field} must be in {left}{min_value:g}, {max_value:g}{right}",
            error_code=ErrorCode.OUT_OF_RANGE,
            field=field,
        )

    return value
