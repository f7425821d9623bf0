"""Liquidation Price Calculator.

Price at which a position is force-closed under cross or isolated
margin. This is an approximation of exchange liquidation engines: it
does not model tiered maintenance-margin brackets, so results are only
expected to land within REFERENCE_DEVIATION_TOLERANCE of an exchange's
own figure.
"""

import logging
from typing import Optional

from src.calc_errors import validate_leverage, validate_price, validate_quantity, validate_range
from src.futures_calculator.config import (
    DEFAULT_LIMITS_CONFIG,
    REFERENCE_DEVIATION_TOLERANCE,
    LimitsConfig,
    MarginMode,
    PositionSide,
)
from src.futures_calculator.models import LiquidationInputs, LiquidationResult
from src.futures_calculator.validation import RuleSet, check_non_negative
from src.logging_config import log_performance

logger = logging.getLogger(__name__)


def isolated_liquidation_price(
    side: PositionSide,
    entry_price: float,
    quantity: float,
    margin: float,
    maintenance_margin_rate: float,
) -> float:
    """Liquidation price when only ``margin`` backs the position.

    Returns 0 for an empty position; never negative.
    """
    if quantity <= 0:
        return 0.0
    maintenance_margin = entry_price * quantity * maintenance_margin_rate
    adjustment = (margin - maintenance_margin) / quantity
    if side == PositionSide.LONG:
        price = entry_price - adjustment
    else:
        price = entry_price + adjustment
    return max(0.0, price)


def cross_liquidation_price(
    side: PositionSide,
    entry_price: float,
    quantity: float,
    leverage: float,
    wallet_balance: float,
    maintenance_margin_rate: float,
) -> float:
    """Liquidation price when the whole wallet balance backs the position."""
    position_value = entry_price * quantity
    if position_value <= 0:
        return 0.0
    initial_margin = position_value / leverage
    maintenance_margin = position_value * maintenance_margin_rate
    available_balance = wallet_balance - initial_margin
    ratio = (available_balance - maintenance_margin) / position_value
    if side == PositionSide.LONG:
        price = entry_price * (1 - ratio)
    else:
        price = entry_price * (1 + ratio)
    return max(0.0, price)


def estimate_liquidation_price(
    side: PositionSide,
    leverage: float,
    average_price: float,
    maintenance_margin_rate: float,
) -> float:
    """Isolated-margin liquidation price with margin equal to notional / leverage.

    Long: ``avg * (1 - 1/lev + mmr)``; Short: ``avg * (1 + 1/lev - mmr)``.
    """
    if side == PositionSide.LONG:
        price = average_price * (1 - 1 / leverage + maintenance_margin_rate)
    else:
        price = average_price * (1 + 1 / leverage - maintenance_margin_rate)
    return max(0.0, price)


def distance_to_liquidation(current_price: float, liquidation_price: float, side: PositionSide) -> float:
    """Percent move from ``current_price`` to liquidation; 0 if either price is non-positive."""
    if current_price <= 0 or liquidation_price <= 0:
        return 0.0
    if side == PositionSide.LONG:
        return (current_price - liquidation_price) / current_price * 100
    return (liquidation_price - current_price) / current_price * 100


def within_reference_tolerance(
    computed: float,
    reference: float,
    tolerance: float = REFERENCE_DEVIATION_TOLERANCE,
) -> bool:
    """True if ``computed`` deviates from ``reference`` by at most ``tolerance`` (relative)."""
    if reference == 0:
        return computed == 0
    return abs(computed - reference) / abs(reference) <= tolerance


class LiquidationCalculator:
    """Cross/isolated liquidation price for a single position."""

    def __init__(self, limits: Optional[LimitsConfig] = None) -> None:
        self.limits = limits or DEFAULT_LIMITS_CONFIG

    @log_performance(calculator="liquidation")
    def calculate(self, inputs: LiquidationInputs) -> LiquidationResult:
        """Compute the liquidation price.

        A zero-quantity position yields an all-zero result.

        Raises:
            ValidationError: If any input is out of range.
        """
        rules = RuleSet()
        rules.validate(validate_leverage, inputs.leverage, max_leverage=self.limits.max_leverage)
        rules.validate(validate_price, inputs.entry_price, field="entry_price")
        rules.validate(validate_quantity, inputs.quantity)
        rules.validate(
            validate_range, inputs.maintenance_margin_rate, "maintenance_margin_rate",
            0.0, 1.0, max_inclusive=False,
        )
        if inputs.margin_mode == MarginMode.CROSS:
            rules.add("wallet_balance", check_non_negative(inputs.wallet_balance, "Wallet balance"))
        rules.raise_if_invalid()

        if inputs.quantity == 0:
            return LiquidationResult()

        position_value = inputs.entry_price * inputs.quantity
        initial_margin = position_value / inputs.leverage
        maintenance_margin = position_value * inputs.maintenance_margin_rate

        if inputs.margin_mode == MarginMode.CROSS:
            liquidation_price = cross_liquidation_price(
                inputs.side, inputs.entry_price, inputs.quantity, inputs.leverage,
                inputs.wallet_balance, inputs.maintenance_margin_rate,
            )
        else:
            liquidation_price = isolated_liquidation_price(
                inputs.side, inputs.entry_price, inputs.quantity,
                initial_margin, inputs.maintenance_margin_rate,
            )

        logger.debug(
            "%s %s liquidation at %.8f (entry %.8f, %gx)",
            inputs.margin_mode.value, inputs.side.value, liquidation_price,
            inputs.entry_price, inputs.leverage,
        )

        return LiquidationResult(
            liquidation_price=liquidation_price,
            position_value=position_value,
            initial_margin=initial_margin,
            maintenance_margin=maintenance_margin,
            distance_pct=distance_to_liquidation(inputs.entry_price, liquidation_price, inputs.side),
        )


def calculate_liquidation_price(inputs: LiquidationInputs) -> LiquidationResult:
    """Convenience wrapper around LiquidationCalculator."""
    return LiquidationCalculator().calculate(inputs)
