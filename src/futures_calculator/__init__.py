"""Futures Calculator Module.

Stateless calculators for leveraged crypto futures: entry averaging,
PnL/ROE, target and liquidation prices, maximum size, break-even
rate, Kelly sizing, pyramid planning, position risk, fee
comparison and price volatility.

Example:
    from src.futures_calculator import PnLCalculator, PnLInputs, PositionSide

    result = PnLCalculator().calculate(PnLInputs(
        side=PositionSide.LONG,
        leverage=10,
        entry_price=50_000,
        quantity=1,
        exit_price=55_000,
    ))
    print(f"PnL {result.pnl:.2f} USDT, ROE {result.roe:.1f}%")
"""

from src.futures_calculator.config import (
    PositionSide,
    MarginMode,
    PyramidStrategy,
    RiskTolerance,
    KellyMode,
    RiskLevel,
    PriceDirection,
    LIQUIDATION_CALCULATOR_MMR,
    POSITION_MANAGER_MMR,
    REFERENCE_DEVIATION_TOLERANCE,
    CLOSED_QUANTITY_TOLERANCE,
    LimitsConfig,
    BreakEvenConfig,
    KellyPolicy,
    PyramidConfig,
    RiskConfig,
    CalculatorConfig,
    DEFAULT_LIMITS_CONFIG,
    DEFAULT_BREAK_EVEN_CONFIG,
    DEFAULT_KELLY_POLICY,
    DEFAULT_PYRAMID_CONFIG,
    DEFAULT_RISK_CONFIG,
    DEFAULT_CONFIG,
)

from src.futures_calculator.models import (
    Position,
    WeightedFill,
    ExitOrder,
    EntryPriceInputs,
    EntryPriceResult,
    PnLInputs,
    PnLResult,
    ExitOrderResult,
    TargetPriceInputs,
    TargetPriceResult,
    LiquidationInputs,
    LiquidationResult,
    MaxPositionInputs,
    MaxPositionResult,
    BreakEvenInputs,
    BreakEvenResult,
    CostBreakdown,
    TradeRecord,
    RiskAdjustment,
    KellyInputs,
    KellyResult,
    PyramidParams,
    PyramidLayer,
    PyramidResult,
    AddPositionInputs,
    AddPositionResult,
    RiskAnalysisInputs,
    RiskAnalysis,
    ExchangeFeeSchedule,
    FeeComparisonInputs,
    ExchangeFee,
    FeeComparisonResult,
    VolatilityInputs,
    ReverseVolatilityInputs,
    InvestmentBand,
    VolatilityResult,
    ReverseVolatilityResult,
)

from src.futures_calculator.formatting import (
    round_half_away,
    format_number,
    format_percentage,
    format_fraction,
)
from src.futures_calculator.entry_price import EntryPriceCalculator, calculate_entry_price
from src.futures_calculator.pnl import PnLCalculator, calculate_pnl
from src.futures_calculator.target_price import TargetPriceCalculator, calculate_target_price
from src.futures_calculator.liquidation import (
    LiquidationCalculator,
    calculate_liquidation_price,
    within_reference_tolerance,
)
from src.futures_calculator.max_position import MaxPositionCalculator, calculate_max_position
from src.futures_calculator.break_even import (
    BreakEvenCalculator,
    calculate_break_even,
    default_break_even_inputs,
    validate_break_even_inputs,
)
from src.futures_calculator.kelly import KellyCalculator, apply_risk_adjustment, calculate_kelly
from src.futures_calculator.pyramid import PyramidPlanner, plan_pyramid
from src.futures_calculator.position import PositionManager, add_to_position, analyze_position_risk
from src.futures_calculator.fees import EXCHANGE_PRESETS, FeeComparisonCalculator, compare_fees
from src.futures_calculator.volatility import (
    VolatilityCalculator,
    calculate_volatility,
    calculate_volatility_target,
)

__all__ = [
    # Config
    "PositionSide",
    "MarginMode",
    "PyramidStrategy",
    "RiskTolerance",
    "KellyMode",
    "RiskLevel",
    "PriceDirection",
    "LIQUIDATION_CALCULATOR_MMR",
    "POSITION_MANAGER_MMR",
    "REFERENCE_DEVIATION_TOLERANCE",
    "CLOSED_QUANTITY_TOLERANCE",
    "LimitsConfig",
    "BreakEvenConfig",
    "KellyPolicy",
    "PyramidConfig",
    "RiskConfig",
    "CalculatorConfig",
    "DEFAULT_LIMITS_CONFIG",
    "DEFAULT_BREAK_EVEN_CONFIG",
    "DEFAULT_KELLY_POLICY",
    "DEFAULT_PYRAMID_CONFIG",
    "DEFAULT_RISK_CONFIG",
    "DEFAULT_CONFIG",
    # Models
    "Position",
    "WeightedFill",
    "ExitOrder",
    "EntryPriceInputs",
    "EntryPriceResult",
    "PnLInputs",
    "PnLResult",
    "ExitOrderResult",
    "TargetPriceInputs",
    "TargetPriceResult",
    "LiquidationInputs",
    "LiquidationResult",
    "MaxPositionInputs",
    "MaxPositionResult",
    "BreakEvenInputs",
    "BreakEvenResult",
    "CostBreakdown",
    "TradeRecord",
    "RiskAdjustment",
    "KellyInputs",
    "KellyResult",
    "PyramidParams",
    "PyramidLayer",
    "PyramidResult",
    "AddPositionInputs",
    "AddPositionResult",
    "RiskAnalysisInputs",
    "RiskAnalysis",
    "ExchangeFeeSchedule",
    "FeeComparisonInputs",
    "ExchangeFee",
    "FeeComparisonResult",
    "VolatilityInputs",
    "ReverseVolatilityInputs",
    "InvestmentBand",
    "VolatilityResult",
    "ReverseVolatilityResult",
    # Formatting
    "round_half_away",
    "format_number",
    "format_percentage",
    "format_fraction",
    # Calculators
    "EntryPriceCalculator",
    "PnLCalculator",
    "TargetPriceCalculator",
    "LiquidationCalculator",
    "MaxPositionCalculator",
    "BreakEvenCalculator",
    "KellyCalculator",
    "PyramidPlanner",
    "PositionManager",
    "FeeComparisonCalculator",
    "VolatilityCalculator",
    "EXCHANGE_PRESETS",
    # Functions
    "calculate_entry_price",
    "calculate_pnl",
    "calculate_target_price",
    "calculate_liquidation_price",
    "within_reference_tolerance",
    "calculate_max_position",
    "calculate_break_even",
    "default_break_even_inputs",
    "validate_break_even_inputs",
    "calculate_kelly",
    "apply_risk_adjustment",
    "plan_pyramid",
    "add_to_position",
    "analyze_position_risk",
    "compare_fees",
    "calculate_volatility",
    "calculate_volatility_target",
]
