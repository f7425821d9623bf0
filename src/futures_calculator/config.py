"""Futures Calculator Configuration.

Enums, named policy constants, and configuration dataclasses for
the leveraged-position calculators.
"""

from dataclasses import dataclass, field
from enum import Enum

from src.calc_errors.validators import MAX_LEVERAGE


class PositionSide(str, Enum):
    """Direction of a futures position."""
    LONG = "long"
    SHORT = "short"


class MarginMode(str, Enum):
    """Which balance backs a position for liquidation purposes."""
    CROSS = "cross"
    ISOLATED = "isolated"


class PyramidStrategy(str, Enum):
    """Quantity growth schedule for scale-in layers."""
    GEOMETRIC = "geometric"
    DOUBLE_DOWN = "double_down"


class RiskTolerance(str, Enum):
    """Risk appetite applied on top of fractional Kelly."""
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


class KellyMode(str, Enum):
    """Source of the Kelly statistics."""
    BASIC = "basic"
    TRADING = "trading"
    HISTORICAL = "historical"


class PriceDirection(str, Enum):
    """Which way price moves from the start price."""
    UP = "up"
    DOWN = "down"


class RiskLevel(str, Enum):
    """Position risk bucket."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"


# Maintenance margin rates used by the two calculator families. They differ
# and neither is authoritative, so liquidation inputs require an explicit rate.
LIQUIDATION_CALCULATOR_MMR = 0.0065
POSITION_MANAGER_MMR = 0.005

# Open quantity at or below this fraction of the position size counts as closed.
CLOSED_QUANTITY_TOLERANCE = 1e-12

# Cross-checks against a reference liquidation engine fail above 10% deviation.
REFERENCE_DEVIATION_TOLERANCE = 0.10


@dataclass(frozen=True)
class LimitsConfig:
    """Input limits shared by every calculator."""
    max_leverage: float = MAX_LEVERAGE    # Hard limit accepted by validation
    max_ui_leverage: float = 125.0        # Limit exchanges/UI actually offer


@dataclass(frozen=True)
class BreakEvenConfig:
    """Configuration for the break-even rate calculator."""
    principal: float = 1000.0             # Notional principal for the cost breakdown
    rate_decimals: int = 4
    cost_decimals: int = 2
    max_fee_rate: float = 10.0            # %
    min_funding_rate: float = -1.0        # %
    max_funding_rate: float = 1.0         # %
    max_funding_period_hours: float = 24.0
    max_holding_hours: float = 8760.0     # One year


@dataclass(frozen=True)
class KellyPolicy:
    """Advisory thresholds and risk-adjustment multipliers for Kelly sizing.

    These are business policy, not derived math.
    """
    high_kelly_threshold: float = 0.25    # Above: warn, recommend 25% Kelly
    medium_kelly_threshold: float = 0.10  # Above: recommend 50% Kelly
    low_kelly_threshold: float = 0.05     # Above: recommend 75% Kelly
    high_kelly_fraction: float = 0.25
    medium_kelly_fraction: float = 0.50
    low_kelly_fraction: float = 0.75
    full_kelly_fraction: float = 1.0
    min_reliable_trades: int = 30
    high_risk_of_ruin: float = 0.10
    medium_risk_of_ruin: float = 0.05
    low_risk_of_ruin: float = 0.01
    no_data_risk_of_ruin: float = 1.0
    expected_return_scale: float = 100.0
    tolerance_multipliers: tuple[tuple[RiskTolerance, float], ...] = (
        (RiskTolerance.CONSERVATIVE, 0.5),
        (RiskTolerance.MODERATE, 0.75),
        (RiskTolerance.AGGRESSIVE, 1.0),
    )

    def tolerance_multiplier(self, tolerance: RiskTolerance) -> float:
        """Multiplier for ``tolerance``.

        Raises:
            ValueError: If ``tolerance`` is not a RiskTolerance value.
        """
        return dict(self.tolerance_multipliers)[RiskTolerance(tolerance)]


@dataclass(frozen=True)
class PyramidConfig:
    """Configuration for the scale-in planner."""
    min_layers: int = 2
    max_layers: int = 10
    max_price_change_pct: float = 50.0
    default_geometric_multiplier: float = 1.5
    maintenance_margin_rate: float = POSITION_MANAGER_MMR


@dataclass(frozen=True)
class RiskConfig:
    """Weights and bucket edges for the position risk score (0-100)."""
    leverage_weight: float = 40.0
    margin_weight: float = 30.0
    distance_weight: float = 30.0
    leverage_scale: float = 125.0
    low_below: float = 25.0
    medium_below: float = 50.0
    high_below: float = 75.0
    near_liquidation_pct: float = 10.0
    high_leverage: float = 20.0


@dataclass(frozen=True)
class CalculatorConfig:
    """Top-level configuration for the futures calculators."""
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    break_even: BreakEvenConfig = field(default_factory=BreakEvenConfig)
    kelly: KellyPolicy = field(default_factory=KellyPolicy)
    pyramid: PyramidConfig = field(default_factory=PyramidConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)


DEFAULT_LIMITS_CONFIG = LimitsConfig()
DEFAULT_BREAK_EVEN_CONFIG = BreakEvenConfig()
DEFAULT_KELLY_POLICY = KellyPolicy()
DEFAULT_PYRAMID_CONFIG = PyramidConfig()
DEFAULT_RISK_CONFIG = RiskConfig()
DEFAULT_CONFIG = CalculatorConfig()
