"""Futures Calculator Data Models.

Dataclasses for calculator inputs and results. Inputs are frozen;
every result is freshly constructed per call.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

import pandas as pd

from src.futures_calculator.config import (
    KellyMode,
    MarginMode,
    POSITION_MANAGER_MMR,
    PositionSide,
    PriceDirection,
    PyramidStrategy,
    RiskLevel,
    RiskTolerance,
)


# =========================================================================
# Shared inputs
# =========================================================================


@dataclass(frozen=True)
class Position:
    """An open leveraged position."""
    side: PositionSide
    leverage: float
    entry_price: float
    quantity: float
    margin: float = 0.0
    symbol: str = ""

    @property
    def position_value(self) -> float:
        """Notional value at entry."""
        return self.entry_price * self.quantity

    @property
    def is_long(self) -> bool:
        return self.side == PositionSide.LONG


@dataclass(frozen=True)
class WeightedFill:
    """One fill contributing to an averaged entry price."""
    price: float
    quantity: float
    enabled: bool = True


@dataclass(frozen=True)
class ExitOrder:
    """A (partial) closing order against a position."""
    id: str
    price: float
    quantity: float
    enabled: bool = True


# =========================================================================
# Entry price
# =========================================================================


@dataclass(frozen=True)
class EntryPriceInputs:
    fills: Tuple[WeightedFill, ...] = ()


@dataclass
class EntryPriceResult:
    average_entry_price: float = 0.0
    total_quantity: float = 0.0
    total_value: float = 0.0


# =========================================================================
# PnL / ROE
# =========================================================================


@dataclass(frozen=True)
class PnLInputs:
    """Inputs for the PnL calculator.

    When ``exit_orders`` is non-empty the position is closed by those
    orders in sequence and ``exit_price`` is ignored.
    """
    side: PositionSide
    leverage: float
    entry_price: float
    quantity: float
    exit_price: Optional[float] = None
    exit_orders: Tuple[ExitOrder, ...] = ()

    @property
    def is_multi_exit(self) -> bool:
        return len(self.exit_orders) > 0


@dataclass
class ExitOrderResult:
    """Outcome of one executed exit order."""
    id: str
    price: float
    quantity: float
    pnl: float
    roe: float
    margin: float


@dataclass
class PnLResult:
    initial_margin: float = 0.0
    pnl: float = 0.0
    roe: float = 0.0
    position_value: float = 0.0
    total_exit_quantity: float = 0.0
    remaining_quantity: float = 0.0
    exit_order_results: list[ExitOrderResult] = field(default_factory=list)

    @property
    def is_profitable(self) -> bool:
        return self.pnl > 0


# =========================================================================
# Target price / liquidation / max position
# =========================================================================


@dataclass(frozen=True)
class TargetPriceInputs:
    side: PositionSide
    entry_price: float
    target_roe: float
    leverage: float = 1.0


@dataclass
class TargetPriceResult:
    target_price: float = 0.0
    price_change_pct: float = 0.0


@dataclass(frozen=True)
class LiquidationInputs:
    """Inputs for the liquidation price calculator.

    ``maintenance_margin_rate`` is required: see LIQUIDATION_CALCULATOR_MMR
    and POSITION_MANAGER_MMR in config for the two rates in use.
    ``wallet_balance`` only matters in cross margin mode.
    """
    side: PositionSide
    margin_mode: MarginMode
    leverage: float
    entry_price: float
    quantity: float
    maintenance_margin_rate: float
    wallet_balance: float = 0.0


@dataclass
class LiquidationResult:
    liquidation_price: float = 0.0
    position_value: float = 0.0
    initial_margin: float = 0.0
    maintenance_margin: float = 0.0
    distance_pct: float = 0.0


@dataclass(frozen=True)
class MaxPositionInputs:
    leverage: float
    entry_price: float
    wallet_balance: float
    side: PositionSide = PositionSide.LONG


@dataclass
class MaxPositionResult:
    max_quantity: float = 0.0
    max_position_value: float = 0.0


# =========================================================================
# Break-even
# =========================================================================


@dataclass(frozen=True)
class BreakEvenInputs:
    """Fee and funding inputs. All rates are percentages (0.05 = 0.05%)."""
    leverage: float
    open_fee_rate: float
    close_fee_rate: float
    funding_rate: float
    funding_period_hours: float
    holding_hours: float


@dataclass
class CostBreakdown:
    """Costs on an illustrative fixed principal."""
    principal: float = 0.0
    position_value: float = 0.0
    open_cost: float = 0.0
    close_cost: float = 0.0
    funding_cost: float = 0.0
    total_cost: float = 0.0


@dataclass
class BreakEvenResult:
    total_break_even_rate: float = 0.0
    open_cost_rate: float = 0.0
    close_cost_rate: float = 0.0
    funding_cost_rate: float = 0.0
    total_fee_rate: float = 0.0
    funding_periods: float = 0.0
    cost_breakdown: CostBreakdown = field(default_factory=CostBreakdown)


# =========================================================================
# Kelly
# =========================================================================


@dataclass(frozen=True)
class TradeRecord:
    """A closed trade; ``profit`` is signed."""
    id: str
    profit: float
    enabled: bool = True


@dataclass(frozen=True)
class RiskAdjustment:
    fractional_factor: float = 0.5
    max_position: float = 0.25
    risk_tolerance: RiskTolerance = RiskTolerance.MODERATE


@dataclass(frozen=True)
class KellyInputs:
    """Inputs for the Kelly calculator.

    BASIC uses ``win_rate`` and ``odds``; TRADING uses ``win_rate``,
    ``avg_win`` and ``avg_loss``; HISTORICAL uses ``trades``.
    ``win_rate`` is a fraction in (0, 1).
    """
    mode: KellyMode
    win_rate: Optional[float] = None
    odds: Optional[float] = None
    avg_win: Optional[float] = None
    avg_loss: Optional[float] = None
    trades: Tuple[TradeRecord, ...] = ()
    adjustment: RiskAdjustment = field(default_factory=RiskAdjustment)


@dataclass
class KellyResult:
    mode: KellyMode = KellyMode.TRADING
    kelly_percentage: float = 0.0
    fractional_kelly: float = 0.0
    win_rate: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    profit_factor: float = 0.0
    expected_return: float = 0.0
    risk_of_ruin: float = 0.0
    recommendation: str = ""
    recommended_fraction: Optional[float] = None
    total_trades: int = 0
    is_valid: bool = False
    warnings: list[str] = field(default_factory=list)


# =========================================================================
# Pyramid
# =========================================================================


@dataclass(frozen=True)
class PyramidParams:
    side: PositionSide
    leverage: float
    initial_price: float
    initial_quantity: float
    layers: int
    strategy: PyramidStrategy
    price_change_percent: float
    geometric_multiplier: float = 1.5
    symbol: str = ""


@dataclass
class PyramidLayer:
    level: int
    price: float
    quantity: float
    margin: float
    cumulative_quantity: float
    cumulative_margin: float
    average_price: float
    liquidation_price: float
    price_change: float


@dataclass
class PyramidResult:
    layers: list[PyramidLayer] = field(default_factory=list)
    total_quantity: float = 0.0
    total_margin: float = 0.0
    final_average_price: float = 0.0
    final_liquidation_price: float = 0.0
    max_drawdown: float = 0.0

    def to_frame(self) -> pd.DataFrame:
        """One row per layer, indexed by level."""
        columns = [
            "level", "price", "quantity", "margin", "cumulative_quantity",
            "cumulative_margin", "average_price", "liquidation_price", "price_change",
        ]
        rows = [[getattr(layer, c) for c in columns] for layer in self.layers]
        return pd.DataFrame(rows, columns=columns).set_index("level")


# =========================================================================
# Position management
# =========================================================================


@dataclass(frozen=True)
class AddPositionInputs:
    position: Position
    add_price: float
    add_quantity: float
    add_margin: float
    maintenance_margin_rate: float = POSITION_MANAGER_MMR


@dataclass
class AddPositionResult:
    new_average_price: float = 0.0
    new_total_quantity: float = 0.0
    new_total_margin: float = 0.0
    new_liquidation_price: float = 0.0
    price_improvement: float = 0.0
    margin_increase: float = 0.0
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RiskAnalysisInputs:
    position: Position
    current_price: Optional[float] = None
    maintenance_margin_rate: float = POSITION_MANAGER_MMR


@dataclass
class RiskAnalysis:
    risk_level: RiskLevel = RiskLevel.LOW
    risk_score: float = 0.0
    margin_ratio: float = 0.0
    leverage_risk: float = 0.0
    liquidation_price: float = 0.0
    distance_to_liquidation: float = 0.0
    unrealized_pnl: float = 0.0
    roe: float = 0.0
    recommendations: list[str] = field(default_factory=list)


# =========================================================================
# Fee comparison
# =========================================================================


@dataclass(frozen=True)
class ExchangeFeeSchedule:
    """Maker/taker fee rates (percent) for one exchange tier."""
    id: str
    name: str
    maker_fee: float
    taker_fee: float


@dataclass(frozen=True)
class FeeComparisonInputs:
    trade_amount: float
    leverage: float
    maker_ratio: float
    taker_ratio: float
    exchanges: Tuple[ExchangeFeeSchedule, ...] = ()


@dataclass
class ExchangeFee:
    exchange: ExchangeFeeSchedule
    maker_fee: float
    taker_fee: float
    total_fee: float
    actual_trade_amount: float
    fee_rate: float


@dataclass
class FeeComparisonResult:
    results: list[ExchangeFee] = field(default_factory=list)

    def cheapest(self) -> Optional[ExchangeFee]:
        """Lowest total fee; first listed wins ties."""
        if not self.results:
            return None
        return min(self.results, key=lambda r: r.total_fee)

    def to_frame(self) -> pd.DataFrame:
        """One row per exchange, indexed by exchange id."""
        rows = [
            {
                "id": r.exchange.id,
                "name": r.exchange.name,
                "maker_fee": r.maker_fee,
                "taker_fee": r.taker_fee,
                "total_fee": r.total_fee,
                "fee_rate": r.fee_rate,
            }
            for r in self.results
        ]
        return pd.DataFrame(rows, columns=["id", "name", "maker_fee", "taker_fee", "total_fee", "fee_rate"]).set_index("id")


# =========================================================================
# Price volatility
# =========================================================================


@dataclass(frozen=True)
class VolatilityInputs:
    """Two prices; ``investment_amount`` adds a value band when positive."""
    start_price: float
    target_price: float
    investment_amount: Optional[float] = None


@dataclass(frozen=True)
class ReverseVolatilityInputs:
    """A start price and a volatility percentage in (0, 100)."""
    start_price: float
    volatility_pct: float
    direction: PriceDirection = PriceDirection.UP
    investment_amount: Optional[float] = None


@dataclass
class InvestmentBand:
    """An investment moved by the volatility in either direction."""
    amount: float
    swing: float
    upper_bound: float
    lower_bound: float


@dataclass
class VolatilityResult:
    volatility_pct: float = 0.0
    sign: str = "+"
    difference: float = 0.0
    max_price: float = 0.0
    investment: Optional[InvestmentBand] = None


@dataclass
class ReverseVolatilityResult:
    target_price: float = 0.0
    volatility_pct: float = 0.0
    sign: str = "+"
    difference: float = 0.0
    start_price: float = 0.0
    upper_price: float = 0.0
    lower_price: float = 0.0
    investment: Optional[InvestmentBand] = None
