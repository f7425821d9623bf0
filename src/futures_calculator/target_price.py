"""Target Price Calculator.

Algebraic inverse of the single-exit ROE formula: solves for the exit
price that yields a target return at a given leverage.
"""

import logging
from typing import Optional

from src.calc_errors import validate_leverage, validate_price
from src.futures_calculator.config import DEFAULT_LIMITS_CONFIG, LimitsConfig, PositionSide
from src.futures_calculator.models import TargetPriceInputs, TargetPriceResult
from src.futures_calculator.validation import RuleSet, check_finite
from src.logging_config import log_performance

logger = logging.getLogger(__name__)


class TargetPriceCalculator:
    """Exit price needed to reach a target ROE."""

    def __init__(self, limits: Optional[LimitsConfig] = None) -> None:
        self.limits = limits or DEFAULT_LIMITS_CONFIG

    @log_performance(calculator="target_price")
    def calculate(self, inputs: TargetPriceInputs) -> TargetPriceResult:
        """Compute the target exit price.

        Raises:
            ValidationError: If inputs are invalid or the target would
                require a non-positive price (a short cannot return more
                than 100% times leverage).
        """
        rules = RuleSet()
        rules.validate(validate_leverage, inputs.leverage, max_leverage=self.limits.max_leverage)
        rules.validate(validate_price, inputs.entry_price, field="entry_price")
        rules.add("target_roe", check_finite(inputs.target_roe, "Target ROE"))
        rules.raise_if_invalid()

        adjustment = inputs.target_roe / inputs.leverage / 100
        if inputs.side == PositionSide.LONG:
            target_price = inputs.entry_price * (1 + adjustment)
        else:
            target_price = inputs.entry_price * (1 - adjustment)

        rules.require(
            target_price > 0,
            "target_roe",
            f"Target ROE {inputs.target_roe:g}% is unreachable at {inputs.leverage:g}x leverage",
        )
        rules.raise_if_invalid()

        return TargetPriceResult(
            target_price=target_price,
            price_change_pct=(target_price - inputs.entry_price) / inputs.entry_price * 100,
        )


def calculate_target_price(inputs: TargetPriceInputs) -> TargetPriceResult:
    """Convenience wrapper around TargetPriceCalculator."""
    return TargetPriceCalculator().calculate(inputs)
