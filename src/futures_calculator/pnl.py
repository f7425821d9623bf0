"""PnL / ROE Calculator.

Computes profit, loss, and return on equity for a leveraged position,
either closed at a single exit price or by a sequence of partial
exit orders.

Over-specified exit plans are tolerated: each enabled order is clamped
to the quantity still open, and orders arriving after the position is
fully closed are skipped rather than rejected. Float residue below
CLOSED_QUANTITY_TOLERANCE of the position size counts as closed.
"""

import logging
from typing import Optional

from src.calc_errors import validate_leverage, validate_price, validate_quantity
from src.futures_calculator.config import (
    CLOSED_QUANTITY_TOLERANCE,
    DEFAULT_LIMITS_CONFIG,
    LimitsConfig,
    PositionSide,
)
from src.futures_calculator.models import ExitOrderResult, PnLInputs, PnLResult
from src.futures_calculator.validation import RuleSet, check_non_negative, check_positive
from src.logging_config import log_performance

logger = logging.getLogger(__name__)


def directional_pnl(side: PositionSide, entry_price: float, exit_price: float, quantity: float) -> float:
    """Profit of closing ``quantity`` at ``exit_price`` (negative for a loss)."""
    if side == PositionSide.LONG:
        return (exit_price - entry_price) * quantity
    return (entry_price - exit_price) * quantity


def return_on_equity(pnl: float, margin: float) -> float:
    """ROE in percent; 0 when no margin is committed."""
    if margin == 0:
        return 0.0
    return pnl / margin * 100


class PnLCalculator:
    """Profit/loss and ROE for single or multi-order exits."""

    def __init__(self, limits: Optional[LimitsConfig] = None) -> None:
        self.limits = limits or DEFAULT_LIMITS_CONFIG

    @log_performance(calculator="pnl")
    def calculate(self, inputs: PnLInputs) -> PnLResult:
        """Compute PnL and ROE.

        Args:
            inputs: Position parameters plus an exit price or exit orders.

        Returns:
            PnLResult. In multi-exit mode it carries one ExitOrderResult
            per executed order.

        Raises:
            ValidationError: If any input is out of range.
        """
        self._validate(inputs)

        position_value = inputs.entry_price * inputs.quantity
        initial_margin = position_value / inputs.leverage

        if inputs.is_multi_exit:
            return self._multi_exit(inputs, initial_margin, position_value)

        pnl = directional_pnl(inputs.side, inputs.entry_price, inputs.exit_price, inputs.quantity)
        roe = return_on_equity(pnl, initial_margin)

        return PnLResult(
            initial_margin=initial_margin,
            pnl=pnl,
            roe=roe,
            position_value=position_value,
            total_exit_quantity=inputs.quantity,
            remaining_quantity=0.0,
        )

    def _multi_exit(self, inputs: PnLInputs, initial_margin: float, position_value: float) -> PnLResult:
        total_pnl = 0.0
        total_exit_quantity = 0.0
        order_results: list[ExitOrderResult] = []
        closed_below = CLOSED_QUANTITY_TOLERANCE * inputs.quantity

        for order in inputs.exit_orders:
            if not order.enabled:
                continue

            open_quantity = inputs.quantity - total_exit_quantity
            if open_quantity <= closed_below:
                logger.debug("Skipping exit order %s: position already closed", order.id)
                continue

            actual_quantity = min(order.quantity, open_quantity)
            if actual_quantity <= 0:
                continue

            order_pnl = directional_pnl(inputs.side, inputs.entry_price, order.price, actual_quantity)
            order_margin = inputs.entry_price * actual_quantity / inputs.leverage

            total_pnl += order_pnl
            total_exit_quantity += actual_quantity

            order_results.append(ExitOrderResult(
                id=order.id,
                price=order.price,
                quantity=actual_quantity,
                pnl=order_pnl,
                roe=return_on_equity(order_pnl, order_margin),
                margin=order_margin,
            ))

        remaining_quantity = inputs.quantity - total_exit_quantity
        if remaining_quantity <= closed_below:
            remaining_quantity = 0.0

        return PnLResult(
            initial_margin=initial_margin,
            pnl=total_pnl,
            roe=return_on_equity(total_pnl, initial_margin),
            position_value=position_value,
            total_exit_quantity=total_exit_quantity,
            remaining_quantity=remaining_quantity,
            exit_order_results=order_results,
        )

    def _validate(self, inputs: PnLInputs) -> None:
        rules = RuleSet()
        rules.validate(validate_leverage, inputs.leverage, max_leverage=self.limits.max_leverage)
        rules.validate(validate_price, inputs.entry_price, field="entry_price")
        rules.validate(validate_quantity, inputs.quantity)

        if inputs.is_multi_exit:
            for i, order in enumerate(inputs.exit_orders):
                if not order.enabled:
                    continue
                rules.add(f"exit_orders[{i}].price", check_positive(order.price, f"Exit order {order.id} price"))
                rules.add(f"exit_orders[{i}].quantity", check_non_negative(order.quantity, f"Exit order {order.id} quantity"))
        elif inputs.exit_price is None:
            rules.add("exit_price", "exit_price is required when no exit orders are given")
        else:
            rules.validate(validate_price, inputs.exit_price, field="exit_price")

        rules.raise_if_invalid()


def calculate_pnl(inputs: PnLInputs) -> PnLResult:
    """Convenience wrapper around PnLCalculator."""
    return PnLCalculator().calculate(inputs)
