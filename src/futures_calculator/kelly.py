"""Kelly Criterion Calculator.

Optimal stake fraction from win-rate/payoff statistics (basic and
trading forms) or from a log of historical trades, followed by one
shared risk-adjustment stage:

    adjusted = min(kelly * fractional_factor, max_position) * tolerance_multiplier

Advisory thresholds and multipliers come from KellyPolicy.
"""

import logging
import math
from typing import Optional

import numpy as np

from src.futures_calculator.config import DEFAULT_KELLY_POLICY, KellyMode, KellyPolicy, RiskTolerance
from src.futures_calculator.models import KellyInputs, KellyResult, RiskAdjustment
from src.futures_calculator.validation import RuleSet, check_choice, check_positive, check_range
from src.logging_config import log_performance

logger = logging.getLogger(__name__)


def basic_kelly(win_rate: float, odds: float) -> float:
    """f* = (b*p - q) / b, floored at 0."""
    loss_rate = 1 - win_rate
    return max(0.0, (odds * win_rate - loss_rate) / odds)


def trading_kelly(win_rate: float, avg_win: float, avg_loss: float) -> float:
    """f* = (p*avg_win - q*avg_loss) / avg_win, floored at 0."""
    loss_rate = 1 - win_rate
    return max(0.0, (win_rate * avg_win - loss_rate * avg_loss) / avg_win)


def apply_risk_adjustment(
    kelly_percentage: float,
    adjustment: RiskAdjustment,
    policy: Optional[KellyPolicy] = None,
) -> float:
    """Scale a raw Kelly fraction by fractional factor, cap, and risk tolerance.

    Never negative.
    """
    policy = policy or DEFAULT_KELLY_POLICY
    adjusted = min(kelly_percentage * adjustment.fractional_factor, adjustment.max_position)
    adjusted *= policy.tolerance_multiplier(adjustment.risk_tolerance)
    return max(0.0, adjusted)


def risk_of_ruin(kelly_percentage: float, policy: Optional[KellyPolicy] = None) -> float:
    """Coarse ruin-probability estimate by Kelly bucket."""
    policy = policy or DEFAULT_KELLY_POLICY
    if kelly_percentage > policy.high_kelly_threshold:
        return policy.high_risk_of_ruin
    if kelly_percentage > policy.medium_kelly_threshold:
        return policy.medium_risk_of_ruin
    return policy.low_risk_of_ruin


def kelly_advice(
    kelly_percentage: float,
    policy: Optional[KellyPolicy] = None,
) -> tuple[str, Optional[float], list[str]]:
    """Return ``(recommendation, recommended_fraction, warnings)`` for a raw Kelly fraction."""
    policy = policy or DEFAULT_KELLY_POLICY
    if kelly_percentage > policy.high_kelly_threshold:
        return (
            f"Use {policy.high_kelly_fraction:.0%} fractional Kelly",
            policy.high_kelly_fraction,
            ["Kelly fraction is high; use fractional Kelly to reduce risk"],
        )
    if kelly_percentage > policy.medium_kelly_threshold:
        return f"Use {policy.medium_kelly_fraction:.0%} fractional Kelly", policy.medium_kelly_fraction, []
    if kelly_percentage > policy.low_kelly_threshold:
        return f"Use {policy.low_kelly_fraction:.0%} fractional Kelly", policy.low_kelly_fraction, []
    if kelly_percentage > 0:
        return "Full Kelly is acceptable", policy.full_kelly_fraction, []
    return (
        "Kelly sizing is not suitable for this strategy",
        None,
        ["Non-positive Kelly fraction: the strategy has no positive expectancy"],
    )


class KellyCalculator:
    """Kelly position sizing in basic, trading, or historical mode."""

    def __init__(self, policy: Optional[KellyPolicy] = None) -> None:
        self.policy = policy or DEFAULT_KELLY_POLICY

    @log_performance(calculator="kelly")
    def calculate(self, inputs: KellyInputs) -> KellyResult:
        """Compute the Kelly fraction and its risk-adjusted stake.

        Raises:
            ValidationError: For BASIC/TRADING inputs outside their domain
                (win rate not in (0, 1), non-positive odds or averages) or
                a risk adjustment outside (0, 1] or with an unknown risk
                tolerance.
        """
        rules = RuleSet()
        adj = inputs.adjustment
        rules.add(
            "adjustment.fractional_factor",
            check_range(adj.fractional_factor, "Fractional Kelly factor", 0, 1, min_inclusive=False),
        )
        rules.add(
            "adjustment.max_position",
            check_range(adj.max_position, "Maximum position", 0, 1, min_inclusive=False),
        )
        rules.add(
            "adjustment.risk_tolerance",
            check_choice(adj.risk_tolerance, RiskTolerance, "Risk tolerance"),
        )

        if inputs.mode == KellyMode.BASIC:
            self._validate_win_rate(rules, inputs.win_rate)
            self._validate_amount(rules, "odds", inputs.odds, "Odds")
            rules.raise_if_invalid()
            return self._basic(inputs)

        if inputs.mode == KellyMode.TRADING:
            self._validate_win_rate(rules, inputs.win_rate)
            self._validate_amount(rules, "avg_win", inputs.avg_win, "Average win")
            self._validate_amount(rules, "avg_loss", inputs.avg_loss, "Average loss")
            rules.raise_if_invalid()
            return self._trading(inputs)

        rules.raise_if_invalid()
        return self._historical(inputs)

    def _basic(self, inputs: KellyInputs) -> KellyResult:
        p, b = inputs.win_rate, inputs.odds
        kelly = basic_kelly(p, b)
        # Unit stake: a win pays b, a loss costs 1.
        return self._build(
            inputs, kelly, win_rate=p, avg_win=b, avg_loss=1.0, profit_factor=b,
        )

    def _trading(self, inputs: KellyInputs) -> KellyResult:
        p, w, l = inputs.win_rate, inputs.avg_win, inputs.avg_loss
        kelly = trading_kelly(p, w, l)
        return self._build(
            inputs, kelly, win_rate=p, avg_win=w, avg_loss=l, profit_factor=w / l,
        )

    def _historical(self, inputs: KellyInputs) -> KellyResult:
        profits = np.array([t.profit for t in inputs.trades if t.enabled], dtype=float)

        if profits.size == 0:
            return KellyResult(
                mode=KellyMode.HISTORICAL,
                risk_of_ruin=self.policy.no_data_risk_of_ruin,
                recommendation="No valid trade data",
                is_valid=False,
                warnings=["Add at least one enabled trade record"],
            )

        wins = profits[profits > 0]
        losses = profits[profits < 0]

        total_trades = int(profits.size)
        win_rate = wins.size / total_trades
        avg_win = float(wins.mean()) if wins.size else 0.0
        avg_loss = float(abs(losses.mean())) if losses.size else 0.0

        total_win = float(wins.sum())
        total_loss = float(abs(losses.sum()))
        if total_loss > 0:
            profit_factor = total_win / total_loss
        elif total_win > 0:
            profit_factor = math.inf
        else:
            profit_factor = 0.0

        kelly = trading_kelly(win_rate, avg_win, avg_loss) if avg_win > 0 and avg_loss > 0 else 0.0

        warnings: list[str] = []
        if total_trades < self.policy.min_reliable_trades:
            warnings.append(
                f"Only {total_trades} trades; at least {self.policy.min_reliable_trades} "
                "are recommended for a reliable estimate"
            )
        if wins.size and not losses.size:
            warnings.append("No losing trades recorded; the Kelly fraction cannot be estimated")

        logger.debug(
            "Historical Kelly over %d trades: win_rate=%.4f kelly=%.6f",
            total_trades, win_rate, kelly,
        )

        return self._build(
            inputs, kelly,
            win_rate=win_rate, avg_win=avg_win, avg_loss=avg_loss,
            profit_factor=profit_factor, total_trades=total_trades, warnings=warnings,
        )

    def _build(
        self,
        inputs: KellyInputs,
        kelly: float,
        win_rate: float,
        avg_win: float,
        avg_loss: float,
        profit_factor: float,
        total_trades: int = 0,
        warnings: Optional[list[str]] = None,
    ) -> KellyResult:
        recommendation, fraction, advice_warnings = kelly_advice(kelly, self.policy)
        expected_return = (win_rate * avg_win - (1 - win_rate) * avg_loss) / self.policy.expected_return_scale

        return KellyResult(
            mode=inputs.mode,
            kelly_percentage=kelly,
            fractional_kelly=apply_risk_adjustment(kelly, inputs.adjustment, self.policy),
            win_rate=win_rate,
            avg_win=avg_win,
            avg_loss=avg_loss,
            profit_factor=profit_factor,
            expected_return=expected_return,
            risk_of_ruin=risk_of_ruin(kelly, self.policy),
            recommendation=recommendation,
            recommended_fraction=fraction,
            total_trades=total_trades,
            is_valid=kelly > 0,
            warnings=(warnings or []) + advice_warnings,
        )

    @staticmethod
    def _validate_win_rate(rules: RuleSet, win_rate: Optional[float]) -> None:
        if win_rate is None:
            rules.add("win_rate", "Win rate is required")
            return
        rules.add("win_rate", check_range(win_rate, "Win rate", 0, 1, min_inclusive=False, max_inclusive=False))

    @staticmethod
    def _validate_amount(rules: RuleSet, field: str, value: Optional[float], label: str) -> None:
        if value is None:
            rules.add(field, f"{label} is required")
            return
        rules.add(field, check_positive(value, label))


def calculate_kelly(inputs: KellyInputs) -> KellyResult:
    """Convenience wrapper around KellyCalculator."""
    return KellyCalculator().calculate(inputs)
