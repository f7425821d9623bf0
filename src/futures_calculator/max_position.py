"""Max Position Calculator.

Largest position a wallet balance can open at a given leverage.
"""

from typing import Optional

from src.calc_errors import validate_leverage, validate_price
from src.futures_calculator.config import DEFAULT_LIMITS_CONFIG, LimitsConfig
from src.futures_calculator.models import MaxPositionInputs, MaxPositionResult
from src.futures_calculator.validation import RuleSet, check_non_negative
from src.logging_config import log_performance


class MaxPositionCalculator:
    """Max notional and quantity for a balance; side does not matter."""

    def __init__(self, limits: Optional[LimitsConfig] = None) -> None:
        self.limits = limits or DEFAULT_LIMITS_CONFIG

    @log_performance(calculator="max_position")
    def calculate(self, inputs: MaxPositionInputs) -> MaxPositionResult:
        rules = RuleSet()
        rules.validate(validate_leverage, inputs.leverage, max_leverage=self.limits.max_leverage)
        rules.validate(validate_price, inputs.entry_price, field="entry_price")
        rules.add("wallet_balance", check_non_negative(inputs.wallet_balance, "Wallet balance"))
        rules.raise_if_invalid()

        max_position_value = inputs.wallet_balance * inputs.leverage
        return MaxPositionResult(
            max_quantity=max_position_value / inputs.entry_price,
            max_position_value=max_position_value,
        )


def calculate_max_position(inputs: MaxPositionInputs) -> MaxPositionResult:
    """Convenience wrapper around MaxPositionCalculator."""
    return MaxPositionCalculator().calculate(inputs)
