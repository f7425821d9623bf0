"""Break-Even Rate Calculator.

Aggregates trading fees and funding payments into the minimum return
on margin a position must earn before it is profitable.

Every rate is a percentage. Fees are charged on notional, so relative
to margin they scale with leverage:

    open_cost_rate    = open_fee_rate  * leverage
    close_cost_rate   = close_fee_rate * leverage
    funding_cost_rate = funding_rate   * leverage * holding_hours / funding_period_hours

A negative funding rate (the position receives funding) lowers the
requirement, possibly below zero.
"""

import logging
from typing import Optional

from src.calc_errors import validate_rate
from src.futures_calculator.config import DEFAULT_BREAK_EVEN_CONFIG, DEFAULT_LIMITS_CONFIG, BreakEvenConfig
from src.futures_calculator.formatting import round_half_away
from src.futures_calculator.models import BreakEvenInputs, BreakEvenResult, CostBreakdown
from src.futures_calculator.validation import (
    RuleSet,
    check_finite,
    check_non_negative,
    check_positive,
    check_range,
)
from src.logging_config import log_performance

logger = logging.getLogger(__name__)


def default_break_even_inputs() -> BreakEvenInputs:
    """Typical perpetual-swap parameters: 100x, 0.05% fees, 0.01% funding every 8h, held 24h."""
    return BreakEvenInputs(
        leverage=100,
        open_fee_rate=0.05,
        close_fee_rate=0.05,
        funding_rate=0.01,
        funding_period_hours=8,
        holding_hours=24,
    )


def validate_break_even_inputs(
    inputs: BreakEvenInputs,
    config: Optional[BreakEvenConfig] = None,
) -> list[str]:
    """Policy checks a form applies before calling the calculator.

    Stricter than the calculator itself: caps fee rates, funding rate,
    funding period and holding time at realistic values.

    Returns:
        One message per violated rule; empty when the inputs are acceptable.
    """
    config = config or DEFAULT_BREAK_EVEN_CONFIG
    rules = RuleSet()
    rules.add(
        "leverage",
        check_range(inputs.leverage, "Leverage", 0, DEFAULT_LIMITS_CONFIG.max_leverage, min_inclusive=False),
    )
    rules.add("open_fee_rate", check_range(inputs.open_fee_rate, "Open fee rate", 0, config.max_fee_rate))
    rules.add("close_fee_rate", check_range(inputs.close_fee_rate, "Close fee rate", 0, config.max_fee_rate))
    rules.add(
        "funding_rate",
        check_range(inputs.funding_rate, "Funding rate", config.min_funding_rate, config.max_funding_rate),
    )
    rules.add(
        "funding_period_hours",
        check_range(
            inputs.funding_period_hours, "Funding period", 0, config.max_funding_period_hours,
            min_inclusive=False,
        ),
    )
    rules.add(
        "holding_hours",
        check_range(inputs.holding_hours, "Holding time", 0, config.max_holding_hours),
    )
    return rules.messages


class BreakEvenCalculator:
    """Minimum return needed to cover fees and funding."""

    def __init__(self, config: Optional[BreakEvenConfig] = None) -> None:
        self.config = config or DEFAULT_BREAK_EVEN_CONFIG

    @log_performance(calculator="break_even")
    def calculate(self, inputs: BreakEvenInputs) -> BreakEvenResult:
        """Compute the break-even rate and an illustrative cost breakdown.

        Rates are rounded to ``config.rate_decimals`` and costs to
        ``config.cost_decimals`` places, halves away from zero.

        Raises:
            ValidationError: If leverage or funding period is not positive,
                a fee rate or the holding time is negative.
        """
        rules = RuleSet()
        rules.add("leverage", check_positive(inputs.leverage, "Leverage"))
        rules.validate(validate_rate, inputs.open_fee_rate, field="open_fee_rate")
        rules.validate(validate_rate, inputs.close_fee_rate, field="close_fee_rate")
        rules.add("funding_rate", check_finite(inputs.funding_rate, "Funding rate"))
        rules.add("funding_period_hours", check_positive(inputs.funding_period_hours, "Funding period"))
        rules.add("holding_hours", check_non_negative(inputs.holding_hours, "Holding time"))
        rules.raise_if_invalid()

        open_cost_rate = inputs.open_fee_rate * inputs.leverage
        close_cost_rate = inputs.close_fee_rate * inputs.leverage
        funding_periods = inputs.holding_hours / inputs.funding_period_hours
        funding_cost_rate = inputs.funding_rate * inputs.leverage * funding_periods
        total_fee_rate = open_cost_rate + close_cost_rate
        total_break_even_rate = total_fee_rate + funding_cost_rate

        breakdown = self._cost_breakdown(inputs, funding_periods)

        logger.debug(
            "Break-even %.6f%% over %.2f funding periods at %gx",
            total_break_even_rate, funding_periods, inputs.leverage,
        )

        rd = self.config.rate_decimals
        return BreakEvenResult(
            total_break_even_rate=round_half_away(total_break_even_rate, rd),
            open_cost_rate=round_half_away(open_cost_rate, rd),
            close_cost_rate=round_half_away(close_cost_rate, rd),
            funding_cost_rate=round_half_away(funding_cost_rate, rd),
            total_fee_rate=round_half_away(total_fee_rate, rd),
            funding_periods=funding_periods,
            cost_breakdown=breakdown,
        )

    def _cost_breakdown(self, inputs: BreakEvenInputs, funding_periods: float) -> CostBreakdown:
        principal = self.config.principal
        position_value = principal * inputs.leverage

        open_cost = position_value * inputs.open_fee_rate / 100
        close_cost = position_value * inputs.close_fee_rate / 100
        funding_cost = position_value * inputs.funding_rate / 100 * funding_periods

        cd = self.config.cost_decimals
        return CostBreakdown(
            principal=principal,
            position_value=position_value,
            open_cost=round_half_away(open_cost, cd),
            close_cost=round_half_away(close_cost, cd),
            funding_cost=round_half_away(funding_cost, cd),
            total_cost=round_half_away(open_cost + close_cost + funding_cost, cd),
        )


def calculate_break_even(inputs: BreakEvenInputs) -> BreakEvenResult:
    """Convenience wrapper around BreakEvenCalculator."""
    return BreakEvenCalculator().calculate(inputs)
