"""Price Volatility Calculator.

Swing between two prices measured against the larger of the two:

    volatility = |target - start| / max(start, target) * 100

so a rise and the fall that undoes it report the same figure. The
reverse form solves for the price at a given volatility: above the
start ``start / (1 - v/100)``, below it ``start * (1 - v/100)``.
"""

import logging
from typing import Optional

from src.calc_errors import validate_price
from src.futures_calculator.config import PriceDirection
from src.futures_calculator.models import (
    InvestmentBand,
    ReverseVolatilityInputs,
    ReverseVolatilityResult,
    VolatilityInputs,
    VolatilityResult,
)
from src.futures_calculator.validation import RuleSet, check_choice, check_non_negative, check_range
from src.logging_config import log_performance

logger = logging.getLogger(__name__)


def price_volatility(start_price: float, target_price: float) -> float:
    """Volatility in percent between two positive prices."""
    return abs(target_price - start_price) / max(start_price, target_price) * 100


def investment_band(amount: Optional[float], volatility_pct: float) -> Optional[InvestmentBand]:
    """Band of ``amount`` moved by ``volatility_pct``; None unless amount is positive."""
    if amount is None or amount <= 0:
        return None
    swing = amount * volatility_pct / 100
    return InvestmentBand(
        amount=amount,
        swing=swing,
        upper_bound=amount + swing,
        lower_bound=amount - swing,
    )


class VolatilityCalculator:
    """Forward (two prices) and reverse (price plus volatility) calculations."""

    @log_performance(calculator="volatility")
    def calculate(self, inputs: VolatilityInputs) -> VolatilityResult:
        """Volatility between a start and a target price.

        Raises:
            ValidationError: If either price is not positive, the prices
                are equal, or the investment amount is negative.
        """
        rules = RuleSet()
        rules.validate(validate_price, inputs.start_price, field="start_price")
        rules.validate(validate_price, inputs.target_price, field="target_price")
        if inputs.investment_amount is not None:
            rules.add("investment_amount", check_non_negative(inputs.investment_amount, "Investment amount"))
        if rules.is_valid:
            rules.require(
                inputs.start_price != inputs.target_price,
                "target_price",
                "Start and target prices must differ",
            )
        rules.raise_if_invalid()

        volatility = price_volatility(inputs.start_price, inputs.target_price)
        return VolatilityResult(
            volatility_pct=volatility,
            sign="+" if inputs.target_price >= inputs.start_price else "-",
            difference=abs(inputs.target_price - inputs.start_price),
            max_price=max(inputs.start_price, inputs.target_price),
            investment=investment_band(inputs.investment_amount, volatility),
        )

    @log_performance(calculator="volatility_reverse")
    def reverse(self, inputs: ReverseVolatilityInputs) -> ReverseVolatilityResult:
        """Price reached by moving ``volatility_pct`` away from the start.

        Raises:
            ValidationError: If the start price is not positive, the
                volatility is outside (0, 100), or the direction or
                investment amount is invalid.
        """
        rules = RuleSet()
        rules.validate(validate_price, inputs.start_price, field="start_price")
        rules.add(
            "volatility_pct",
            check_range(inputs.volatility_pct, "Volatility", 0, 100, min_inclusive=False, max_inclusive=False),
        )
        rules.add("direction", check_choice(inputs.direction, PriceDirection, "Direction"))
        if inputs.investment_amount is not None:
            rules.add("investment_amount", check_non_negative(inputs.investment_amount, "Investment amount"))
        rules.raise_if_invalid()

        remaining = 1 - inputs.volatility_pct / 100
        upper_price = inputs.start_price / remaining
        lower_price = inputs.start_price * remaining
        going_up = PriceDirection(inputs.direction) == PriceDirection.UP
        target_price = upper_price if going_up else lower_price

        logger.debug(
            "%.4g%% from %.8g: up %.8g, down %.8g",
            inputs.volatility_pct, inputs.start_price, upper_price, lower_price,
        )

        return ReverseVolatilityResult(
            target_price=target_price,
            volatility_pct=inputs.volatility_pct,
            sign="+" if going_up else "-",
            difference=abs(target_price - inputs.start_price),
            start_price=inputs.start_price,
            upper_price=upper_price,
            lower_price=lower_price,
            investment=investment_band(inputs.investment_amount, inputs.volatility_pct),
        )


def calculate_volatility(inputs: VolatilityInputs) -> VolatilityResult:
    """Convenience wrapper around VolatilityCalculator.calculate."""
    return VolatilityCalculator().calculate(inputs)


def calculate_volatility_target(inputs: ReverseVolatilityInputs) -> ReverseVolatilityResult:
    """Convenience wrapper around VolatilityCalculator.reverse."""
    return VolatilityCalculator().reverse(inputs)
