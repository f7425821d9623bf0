"""Pyramid (Scale-In) Planner.

Lays out a schedule of averaging-down entries. Layer ``i`` (0-based)
is placed at ``initial_price * (1 -/+ pct/100) ** i``: below the start
for longs, above it for shorts. Quantity grows by the geometric
multiplier (or doubles for DOUBLE_DOWN), and each layer reports the
running average entry and an estimated liquidation price.
"""

import logging
from typing import Optional

from src.calc_errors import validate_leverage, validate_price
from src.futures_calculator.config import (
    DEFAULT_LIMITS_CONFIG,
    DEFAULT_PYRAMID_CONFIG,
    LimitsConfig,
    PositionSide,
    PyramidConfig,
    PyramidStrategy,
)
from src.futures_calculator.liquidation import estimate_liquidation_price
from src.futures_calculator.models import PyramidLayer, PyramidParams, PyramidResult
from src.futures_calculator.validation import RuleSet, check_positive, check_range
from src.logging_config import PerformanceTimer, log_performance, tag_calculation

logger = logging.getLogger(__name__)


class PyramidPlanner:
    """Builds a multi-layer scale-in plan for one position."""

    def __init__(
        self,
        config: Optional[PyramidConfig] = None,
        limits: Optional[LimitsConfig] = None,
    ) -> None:
        self.config = config or DEFAULT_PYRAMID_CONFIG
        self.limits = limits or DEFAULT_LIMITS_CONFIG

    @log_performance(calculator="pyramid")
    def calculate(self, params: PyramidParams) -> PyramidResult:
        """Plan every layer.

        Args:
            params: Side, leverage, starting price/quantity, layer count,
                strategy and per-layer price step in percent.

        Returns:
            PyramidResult with one PyramidLayer per level (1-based).

        Raises:
            ValidationError: If the layer count or price step is outside
                the configured bounds, or any price/size input is invalid.
        """
        self._validate(params)
        tag_calculation(symbol=params.symbol or None, side=params.side.value, layers=params.layers)

        with PerformanceTimer(f"pyramid.{params.strategy.value}"):
            layers = self._build_layers(params)

        last = layers[-1]
        result = PyramidResult(
            layers=layers,
            total_quantity=last.cumulative_quantity,
            total_margin=last.cumulative_margin,
            final_average_price=last.average_price,
            final_liquidation_price=last.liquidation_price,
            max_drawdown=abs(last.price_change),
        )

        logger.info(
            "Pyramid %s %s x%d: qty=%.6f avg=%.4f liq=%.4f",
            params.side.value, params.strategy.value, params.layers,
            result.total_quantity, result.final_average_price, result.final_liquidation_price,
        )
        return result

    def _build_layers(self, params: PyramidParams) -> list[PyramidLayer]:
        step = params.price_change_percent / 100
        direction = -1 if params.side == PositionSide.LONG else 1

        layers: list[PyramidLayer] = []
        cumulative_quantity = 0.0
        cumulative_margin = 0.0
        cumulative_value = 0.0

        for i in range(params.layers):
            price = params.initial_price * (1 + direction * step) ** i
            quantity = params.initial_quantity * self._growth(params) ** i
            margin = price * quantity / params.leverage

            cumulative_quantity += quantity
            cumulative_margin += margin
            cumulative_value += price * quantity
            average_price = cumulative_value / cumulative_quantity

            layers.append(PyramidLayer(
                level=i + 1,
                price=price,
                quantity=quantity,
                margin=margin,
                cumulative_quantity=cumulative_quantity,
                cumulative_margin=cumulative_margin,
                average_price=average_price,
                liquidation_price=estimate_liquidation_price(
                    params.side, params.leverage, average_price,
                    self.config.maintenance_margin_rate,
                ),
                price_change=(price - params.initial_price) / params.initial_price * 100,
            ))

        return layers

    @staticmethod
    def _growth(params: PyramidParams) -> float:
        if params.strategy == PyramidStrategy.DOUBLE_DOWN:
            return 2.0
        return params.geometric_multiplier

    def _validate(self, params: PyramidParams) -> None:
        cfg = self.config
        rules = RuleSet()
        rules.validate(validate_leverage, params.leverage, max_leverage=self.limits.max_leverage)
        rules.validate(validate_price, params.initial_price, field="initial_price")
        rules.add("initial_quantity", check_positive(params.initial_quantity, "Initial quantity"))

        if isinstance(params.layers, bool) or not isinstance(params.layers, int):
            rules.add("layers", "Layer count must be a whole number")
        else:
            rules.add("layers", check_range(params.layers, "Layer count", cfg.min_layers, cfg.max_layers))

        rules.add(
            "price_change_percent",
            check_range(
                params.price_change_percent, "Price change per layer",
                0, cfg.max_price_change_pct, min_inclusive=False,
            ),
        )
        if params.strategy == PyramidStrategy.GEOMETRIC:
            rules.add("geometric_multiplier", check_positive(params.geometric_multiplier, "Geometric multiplier"))
        rules.raise_if_invalid()


def plan_pyramid(params: PyramidParams) -> PyramidResult:
    """Convenience wrapper around PyramidPlanner."""
    return PyramidPlanner().calculate(params)
