"""Exchange Fee Comparison.

Trading fees for the same leveraged trade across exchange fee tiers,
split between maker and taker execution. Fee rates are percentages
of notional.
"""

import logging
import math
from typing import Optional

from src.futures_calculator.config import DEFAULT_LIMITS_CONFIG, LimitsConfig
from src.futures_calculator.models import (
    ExchangeFee,
    ExchangeFeeSchedule,
    FeeComparisonInputs,
    FeeComparisonResult,
)
from src.futures_calculator.validation import RuleSet, check_non_negative, check_positive, check_range
from src.logging_config import log_performance

logger = logging.getLogger(__name__)


EXCHANGE_PRESETS: tuple[ExchangeFeeSchedule, ...] = (
    ExchangeFeeSchedule("binance-vip0", "Binance (VIP 0)", maker_fee=0.02, taker_fee=0.04),
    ExchangeFeeSchedule("binance-vip1", "Binance (VIP 1)", maker_fee=0.016, taker_fee=0.04),
    ExchangeFeeSchedule("binance-vip2", "Binance (VIP 2)", maker_fee=0.014, taker_fee=0.035),
    ExchangeFeeSchedule("okx-lv1", "OKX (Lv 1)", maker_fee=0.02, taker_fee=0.05),
    ExchangeFeeSchedule("okx-lv2", "OKX (Lv 2)", maker_fee=0.015, taker_fee=0.04),
    ExchangeFeeSchedule("bybit-vip0", "Bybit (VIP 0)", maker_fee=0.02, taker_fee=0.055),
    ExchangeFeeSchedule("bybit-vip1", "Bybit (VIP 1)", maker_fee=0.02, taker_fee=0.05),
    ExchangeFeeSchedule("gate-vip0", "Gate.io (VIP 0)", maker_fee=0.02, taker_fee=0.05),
    ExchangeFeeSchedule("huobi-vip0", "Huobi (VIP 0)", maker_fee=0.02, taker_fee=0.04),
    ExchangeFeeSchedule("kucoin-lv0", "KuCoin (Lv 0)", maker_fee=0.02, taker_fee=0.06),
)

# Compared when the caller does not pick any exchanges.
DEFAULT_EXCHANGE_IDS = ("binance-vip0", "okx-lv1", "bybit-vip0")


def get_exchange_preset(exchange_id: str) -> ExchangeFeeSchedule:
    """Look up a preset by id.

    Raises:
        KeyError: If no preset has that id.
    """
    for preset in EXCHANGE_PRESETS:
        if preset.id == exchange_id:
            return preset
    raise KeyError(exchange_id)


def exchange_fee(schedule: ExchangeFeeSchedule, inputs: FeeComparisonInputs) -> ExchangeFee:
    """Fees for one exchange; no validation."""
    actual = inputs.trade_amount * inputs.leverage
    maker_fee = actual * inputs.maker_ratio / 100 * schedule.maker_fee / 100
    taker_fee = actual * inputs.taker_ratio / 100 * schedule.taker_fee / 100
    total_fee = maker_fee + taker_fee
    return ExchangeFee(
        exchange=schedule,
        maker_fee=maker_fee,
        taker_fee=taker_fee,
        total_fee=total_fee,
        actual_trade_amount=actual,
        fee_rate=total_fee / actual * 100 if actual > 0 else 0.0,
    )


class FeeComparisonCalculator:
    """Compares the fee cost of one trade across exchanges."""

    def __init__(self, limits: Optional[LimitsConfig] = None) -> None:
        self.limits = limits or DEFAULT_LIMITS_CONFIG

    @log_performance(calculator="fee_comparison")
    def calculate(self, inputs: FeeComparisonInputs) -> FeeComparisonResult:
        """Compute fees per exchange, in input order.

        An empty ``exchanges`` tuple compares DEFAULT_EXCHANGE_IDS.

        Raises:
            ValidationError: If the amount or leverage is out of range, a
                ratio is negative, or the ratios do not sum to 100.
        """
        rules = RuleSet()
        rules.add("trade_amount", check_positive(inputs.trade_amount, "Trade amount"))
        rules.add(
            "leverage",
            check_range(inputs.leverage, "Leverage", 0, self.limits.max_ui_leverage, min_inclusive=False),
        )
        rules.add("maker_ratio", check_non_negative(inputs.maker_ratio, "Maker ratio"))
        rules.add("taker_ratio", check_non_negative(inputs.taker_ratio, "Taker ratio"))
        if rules.is_valid:
            rules.require(
                math.isclose(inputs.maker_ratio + inputs.taker_ratio, 100.0),
                "taker_ratio",
                "Maker and taker ratios must sum to 100%",
            )
        rules.raise_if_invalid()

        exchanges = inputs.exchanges or tuple(get_exchange_preset(i) for i in DEFAULT_EXCHANGE_IDS)
        results = [exchange_fee(schedule, inputs) for schedule in exchanges]

        logger.debug("Compared fees across %d exchanges", len(results))
        return FeeComparisonResult(results=results)


def compare_fees(inputs: FeeComparisonInputs) -> FeeComparisonResult:
    """Convenience wrapper around FeeComparisonCalculator."""
    return FeeComparisonCalculator().calculate(inputs)
