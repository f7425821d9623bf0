"""Position Manager.

Operations on an already-open position: averaging in with an
additional fill, and scoring how close the position is to trouble.
"""

import logging
from typing import Optional

from src.calc_errors import validate_leverage, validate_price
from src.futures_calculator.config import (
    DEFAULT_LIMITS_CONFIG,
    DEFAULT_RISK_CONFIG,
    LimitsConfig,
    PositionSide,
    RiskConfig,
    RiskLevel,
)
from src.futures_calculator.entry_price import weighted_average_price
from src.futures_calculator.liquidation import (
    distance_to_liquidation,
    estimate_liquidation_price,
    isolated_liquidation_price,
)
from src.futures_calculator.models import (
    AddPositionInputs,
    AddPositionResult,
    Position,
    RiskAnalysis,
    RiskAnalysisInputs,
    WeightedFill,
)
from src.futures_calculator.pnl import directional_pnl, return_on_equity
from src.futures_calculator.validation import RuleSet, check_non_negative, check_positive
from src.logging_config import log_performance, tag_calculation

logger = logging.getLogger(__name__)


class PositionManager:
    """Add-to-position and risk analysis for a single open position."""

    def __init__(
        self,
        risk_config: Optional[RiskConfig] = None,
        limits: Optional[LimitsConfig] = None,
    ) -> None:
        self.risk_config = risk_config or DEFAULT_RISK_CONFIG
        self.limits = limits or DEFAULT_LIMITS_CONFIG

    @log_performance(calculator="add_position")
    def add_position(self, inputs: AddPositionInputs) -> AddPositionResult:
        """Average a new fill into an existing position.

        Args:
            inputs: The open position plus the added price, quantity and margin.

        Returns:
            AddPositionResult with the new average, totals, estimated
            liquidation price and advisory warnings.

        Raises:
            ValidationError: If the position or the added fill is invalid.
        """
        position = inputs.position
        rules = RuleSet()
        self._validate_position(rules, position)
        rules.add("margin", check_non_negative(position.margin, "Position margin"))
        rules.add("add_price", check_positive(inputs.add_price, "Added price"))
        rules.add("add_quantity", check_positive(inputs.add_quantity, "Added quantity"))
        rules.add("add_margin", check_positive(inputs.add_margin, "Added margin"))
        rules.raise_if_invalid()

        new_average, new_quantity, _ = weighted_average_price([
            WeightedFill(price=position.entry_price, quantity=position.quantity),
            WeightedFill(price=inputs.add_price, quantity=inputs.add_quantity),
        ])
        new_margin = position.margin + inputs.add_margin

        if new_quantity > 0 and new_margin > 0:
            new_liquidation = estimate_liquidation_price(
                position.side, position.leverage, new_average, inputs.maintenance_margin_rate,
            )
        else:
            new_liquidation = 0.0

        old = position.entry_price
        if position.side == PositionSide.LONG:
            price_improvement = (new_average - old) / old * 100
        else:
            price_improvement = (old - new_average) / old * 100

        margin_increase = inputs.add_margin / position.margin * 100 if position.margin > 0 else 0.0

        warnings = []
        if position.side == PositionSide.LONG and inputs.add_price >= old:
            warnings.append("Adding to a long at or above the entry price raises the average cost")
        elif position.side == PositionSide.SHORT and inputs.add_price <= old:
            warnings.append("Adding to a short at or below the entry price lowers the average entry")

        logger.debug(
            "Added %.8f @ %.8f: avg %.8f -> %.8f",
            inputs.add_quantity, inputs.add_price, old, new_average,
        )

        return AddPositionResult(
            new_average_price=new_average,
            new_total_quantity=new_quantity,
            new_total_margin=new_margin,
            new_liquidation_price=new_liquidation,
            price_improvement=price_improvement,
            margin_increase=margin_increase,
            warnings=warnings,
        )

    @log_performance(calculator="risk_analysis")
    def analyze_risk(self, inputs: RiskAnalysisInputs) -> RiskAnalysis:
        """Score a position's risk on a 0-100 scale.

        The score sums three capped components: leverage relative to
        ``leverage_scale``, thinness of the margin ratio, and closeness
        to the liquidation price.

        Raises:
            ValidationError: If the position or current price is invalid.
        """
        tag_calculation(symbol=inputs.position.symbol or None, side=inputs.position.side.value)
        position = inputs.position
        cfg = self.risk_config
        rules = RuleSet()
        self._validate_position(rules, position)
        rules.add("margin", check_non_negative(position.margin, "Position margin"))
        if inputs.current_price is not None:
            rules.add("current_price", check_positive(inputs.current_price, "Current price"))
        rules.raise_if_invalid()

        price = inputs.current_price if inputs.current_price is not None else position.entry_price
        margin_ratio = position.margin / (position.quantity * price)

        liquidation_price = isolated_liquidation_price(
            position.side, position.entry_price, position.quantity,
            position.margin, inputs.maintenance_margin_rate,
        )
        distance = distance_to_liquidation(price, liquidation_price, position.side)

        leverage_risk = min(position.leverage / cfg.leverage_scale * cfg.leverage_weight, cfg.leverage_weight)
        margin_risk = max(0.0, (1 - margin_ratio) * cfg.margin_weight)
        distance_risk = max(0.0, (1 - distance / 100) * cfg.distance_weight)
        risk_score = min(100.0, leverage_risk + margin_risk + distance_risk)

        risk_level = self._risk_level(risk_score)

        recommendations = []
        if risk_level in (RiskLevel.HIGH, RiskLevel.EXTREME):
            recommendations.append("Reduce leverage to lower liquidation risk")
            recommendations.append("Set a stop loss")
        if distance < cfg.near_liquidation_pct:
            recommendations.append("Price is close to liquidation; consider adding margin")
        if position.leverage > cfg.high_leverage:
            recommendations.append(f"Leverage above {cfg.high_leverage:g}x is high risk")

        pnl = directional_pnl(position.side, position.entry_price, price, position.quantity)

        if risk_level == RiskLevel.EXTREME:
            logger.warning(
                "Extreme risk on %s %s: score=%.1f distance=%.2f%%",
                position.symbol or "position", position.side.value, risk_score, distance,
            )

        return RiskAnalysis(
            risk_level=risk_level,
            risk_score=risk_score,
            margin_ratio=margin_ratio,
            leverage_risk=leverage_risk,
            liquidation_price=liquidation_price,
            distance_to_liquidation=distance,
            unrealized_pnl=pnl,
            roe=return_on_equity(pnl, position.margin),
            recommendations=recommendations,
        )

    def _risk_level(self, score: float) -> RiskLevel:
        cfg = self.risk_config
        if score < cfg.low_below:
            return RiskLevel.LOW
        if score < cfg.medium_below:
            return RiskLevel.MEDIUM
        if score < cfg.high_below:
            return RiskLevel.HIGH
        return RiskLevel.EXTREME

    def _validate_position(self, rules: RuleSet, position: Position) -> None:
        rules.validate(validate_leverage, position.leverage, max_leverage=self.limits.max_leverage)
        rules.validate(validate_price, position.entry_price, field="entry_price")
        rules.add("quantity", check_positive(position.quantity, "Quantity"))


def add_to_position(inputs: AddPositionInputs) -> AddPositionResult:
    """Convenience wrapper around PositionManager.add_position."""
    return PositionManager().add_position(inputs)


def analyze_position_risk(inputs: RiskAnalysisInputs) -> RiskAnalysis:
    """Convenience wrapper around PositionManager.analyze_risk."""
    return PositionManager().analyze_risk(inputs)
