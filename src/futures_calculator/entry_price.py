"""Weighted Entry Price Calculator.

Averages cost basis across multiple fills.
"""

import logging
from typing import Iterable

from src.futures_calculator.models import EntryPriceInputs, EntryPriceResult, WeightedFill
from src.futures_calculator.validation import RuleSet, check_non_negative, check_positive
from src.logging_config import log_performance

logger = logging.getLogger(__name__)


def weighted_average_price(fills: Iterable[WeightedFill]) -> tuple[float, float, float]:
    """Return ``(average_price, total_quantity, total_value)`` over enabled fills.

    Zero-quantity fills carry no weight; a zero total quantity yields an
    average of 0.
    """
    total_value = 0.0
    total_quantity = 0.0
    for fill in fills:
        if not fill.enabled:
            continue
        total_value += fill.price * fill.quantity
        total_quantity += fill.quantity

    average = total_value / total_quantity if total_quantity > 0 else 0.0
    return average, total_quantity, total_value


class EntryPriceCalculator:
    """Computes the average entry price of a set of fills."""

    @log_performance(calculator="entry_price")
    def calculate(self, inputs: EntryPriceInputs) -> EntryPriceResult:
        """Average the enabled fills.

        Args:
            inputs: Fills to average.

        Returns:
            EntryPriceResult; all zeros for an empty list.

        Raises:
            ValidationError: If an enabled fill has a non-positive price
                or a negative quantity.
        """
        rules = RuleSet()
        for i, fill in enumerate(inputs.fills):
            if not fill.enabled:
                continue
            rules.add(f"fills[{i}].price", check_positive(fill.price, f"Fill {i + 1} price"))
            rules.add(f"fills[{i}].quantity", check_non_negative(fill.quantity, f"Fill {i + 1} quantity"))
        rules.raise_if_invalid()

        average, total_quantity, total_value = weighted_average_price(inputs.fills)
        logger.debug("Averaged %d fills: avg=%.8f qty=%.8f", len(inputs.fills), average, total_quantity)

        return EntryPriceResult(
            average_entry_price=average,
            total_quantity=total_quantity,
            total_value=total_value,
        )


def calculate_entry_price(fills: Iterable[WeightedFill]) -> EntryPriceResult:
    """Convenience wrapper around EntryPriceCalculator."""
    return EntryPriceCalculator().calculate(EntryPriceInputs(fills=tuple(fills)))
