"""Tests for Kelly sizing, pyramid planning, position management and fees."""

import math

import pandas as pd
import pytest

from src.calc_errors import ValidationError
from src.futures_calculator.config import (
    KellyMode,
    KellyPolicy,
    PositionSide,
    PyramidConfig,
    PyramidStrategy,
    RiskLevel,
    RiskTolerance,
)
from src.futures_calculator.fees import (
    DEFAULT_EXCHANGE_IDS,
    EXCHANGE_PRESETS,
    FeeComparisonCalculator,
    compare_fees,
    get_exchange_preset,
)
from src.futures_calculator.kelly import (
    KellyCalculator,
    apply_risk_adjustment,
    basic_kelly,
    calculate_kelly,
    kelly_advice,
    risk_of_ruin,
    trading_kelly,
)
from src.futures_calculator.models import (
    AddPositionInputs,
    ExchangeFeeSchedule,
    FeeComparisonInputs,
    KellyInputs,
    Position,
    PyramidParams,
    RiskAdjustment,
    RiskAnalysisInputs,
    TradeRecord,
)
from src.futures_calculator.position import PositionManager, add_to_position, analyze_position_risk
from src.futures_calculator.pyramid import PyramidPlanner, plan_pyramid


LONG = PositionSide.LONG
SHORT = PositionSide.SHORT


def _pyramid(**overrides):
    params = dict(
        side=LONG,
        leverage=10,
        initial_price=50_000,
        initial_quantity=1,
        layers=3,
        strategy=PyramidStrategy.GEOMETRIC,
        price_change_percent=5,
        geometric_multiplier=1.5,
    )
    params.update(overrides)
    return PyramidParams(**params)


# =========================================================================
# Kelly Tests
# =========================================================================


class TestKellyFormulas:
    def test_basic_kelly(self):
        assert basic_kelly(0.6, 2) == pytest.approx(0.4)

    def test_trading_kelly(self):
        assert trading_kelly(0.5, 150, 100) == pytest.approx(1 / 6)

    def test_negative_edge_floored(self):
        assert basic_kelly(0.2, 1) == 0
        assert trading_kelly(0.3, 100, 100) == 0

    def test_risk_adjustment_default(self):
        assert apply_risk_adjustment(0.4, RiskAdjustment()) == pytest.approx(0.15)

    @pytest.mark.parametrize("tolerance,expected", [
        (RiskTolerance.CONSERVATIVE, 0.1),
        (RiskTolerance.MODERATE, 0.15),
        (RiskTolerance.AGGRESSIVE, 0.2),
    ])
    def test_risk_tolerance_multipliers(self, tolerance, expected):
        adj = RiskAdjustment(fractional_factor=0.5, max_position=0.25, risk_tolerance=tolerance)
        assert apply_risk_adjustment(0.4, adj) == pytest.approx(expected)

    def test_max_position_caps(self):
        adj = RiskAdjustment(fractional_factor=1.0, max_position=0.25, risk_tolerance=RiskTolerance.AGGRESSIVE)
        assert apply_risk_adjustment(0.8, adj) == pytest.approx(0.25)

    def test_risk_adjustment_never_negative(self):
        assert apply_risk_adjustment(-0.3, RiskAdjustment()) == 0

    @pytest.mark.parametrize("kelly,fraction", [
        (0.4, 0.25),
        (0.2, 0.50),
        (0.08, 0.75),
        (0.01, 1.0),
        (0.0, None),
    ])
    def test_advice_tiers(self, kelly, fraction):
        _, recommended, _ = kelly_advice(kelly)
        assert recommended == fraction

    def test_high_kelly_warns(self):
        _, _, warnings = kelly_advice(0.4)
        assert len(warnings) == 1

    def test_risk_of_ruin_tiers(self):
        assert risk_of_ruin(0.4) == 0.10
        assert risk_of_ruin(0.2) == 0.05
        assert risk_of_ruin(0.05) == 0.01

    def test_policy_is_hashable(self):
        assert hash(KellyPolicy()) == hash(KellyPolicy())
        assert KellyPolicy().tolerance_multiplier(RiskTolerance.CONSERVATIVE) == 0.5

    def test_tolerance_accepts_plain_value(self):
        assert KellyPolicy().tolerance_multiplier("aggressive") == 1.0

    def test_custom_policy(self):
        policy = KellyPolicy(high_kelly_threshold=0.5)
        _, recommended, warnings = kelly_advice(0.4, policy)
        assert recommended == 0.50
        assert warnings == []


class TestKellyCalculator:
    def test_basic_mode(self):
        result = calculate_kelly(KellyInputs(KellyMode.BASIC, win_rate=0.6, odds=2))
        assert result.mode == KellyMode.BASIC
        assert result.kelly_percentage == pytest.approx(0.4)
        assert result.fractional_kelly == pytest.approx(0.15)
        assert result.profit_factor == 2
        assert result.expected_return == pytest.approx(0.008)
        assert result.recommended_fraction == 0.25
        assert result.risk_of_ruin == 0.10
        assert result.is_valid
        assert result.warnings

    def test_trading_mode(self):
        result = calculate_kelly(KellyInputs(KellyMode.TRADING, win_rate=0.5, avg_win=150, avg_loss=100))
        assert result.kelly_percentage == pytest.approx(1 / 6)
        assert result.fractional_kelly == pytest.approx(0.0625)
        assert result.profit_factor == pytest.approx(1.5)
        assert result.recommended_fraction == 0.50
        assert result.risk_of_ruin == 0.05

    def test_negative_expectancy(self):
        result = calculate_kelly(KellyInputs(KellyMode.TRADING, win_rate=0.3, avg_win=100, avg_loss=100))
        assert result.kelly_percentage == 0
        assert result.fractional_kelly == 0
        assert result.recommended_fraction is None
        assert not result.is_valid
        assert any("expectancy" in w for w in result.warnings)

    @pytest.mark.parametrize("win_rate", [0.01, 0.2, 0.5, 0.8, 0.99])
    @pytest.mark.parametrize("odds", [0.1, 1, 3])
    def test_kelly_never_negative(self, win_rate, odds):
        result = calculate_kelly(KellyInputs(KellyMode.BASIC, win_rate=win_rate, odds=odds))
        assert result.kelly_percentage >= 0
        assert result.fractional_kelly >= 0

    @pytest.mark.parametrize("win_rate", [0, 1, 1.5, -0.1])
    def test_win_rate_out_of_range(self, win_rate):
        with pytest.raises(ValidationError) as exc_info:
            calculate_kelly(KellyInputs(KellyMode.BASIC, win_rate=win_rate, odds=2))
        assert exc_info.value.fields == ["win_rate"]

    def test_missing_trading_inputs(self):
        with pytest.raises(ValidationError) as exc_info:
            calculate_kelly(KellyInputs(KellyMode.TRADING))
        assert set(exc_info.value.fields) == {"win_rate", "avg_win", "avg_loss"}

    def test_invalid_adjustment(self):
        inputs = KellyInputs(
            KellyMode.BASIC, win_rate=0.6, odds=2,
            adjustment=RiskAdjustment(fractional_factor=0, max_position=1.5),
        )
        with pytest.raises(ValidationError) as exc_info:
            calculate_kelly(inputs)
        assert len(exc_info.value.messages) == 2

    def test_unknown_risk_tolerance(self):
        inputs = KellyInputs(
            KellyMode.BASIC, win_rate=0.6, odds=2,
            adjustment=RiskAdjustment(risk_tolerance="reckless"),
        )
        with pytest.raises(ValidationError, match="Risk tolerance") as exc_info:
            calculate_kelly(inputs)
        assert exc_info.value.fields == ["adjustment.risk_tolerance"]

    def test_historical_mode(self, sample_trades):
        result = calculate_kelly(KellyInputs(KellyMode.HISTORICAL, trades=sample_trades))
        assert result.total_trades == 5
        assert result.win_rate == pytest.approx(0.6)
        assert result.avg_win == pytest.approx(150)
        assert result.avg_loss == pytest.approx(75)
        assert result.profit_factor == pytest.approx(3)
        assert result.kelly_percentage == pytest.approx(0.4)
        assert any("Only 5 trades" in w for w in result.warnings)

    def test_historical_ignores_disabled(self, sample_trades):
        trades = sample_trades + (TradeRecord("x", -10_000, enabled=False),)
        result = calculate_kelly(KellyInputs(KellyMode.HISTORICAL, trades=trades))
        assert result.total_trades == 5
        assert result.kelly_percentage == pytest.approx(0.4)

    def test_historical_large_sample_no_warning(self):
        trades = tuple(TradeRecord(str(i), 100 if i % 2 else -50) for i in range(40))
        result = calculate_kelly(KellyInputs(KellyMode.HISTORICAL, trades=trades))
        assert not any("trades" in w for w in result.warnings)

    def test_historical_all_losing(self):
        trades = (TradeRecord("a", -10), TradeRecord("b", -20))
        result = calculate_kelly(KellyInputs(KellyMode.HISTORICAL, trades=trades))
        assert result.kelly_percentage == 0
        assert result.win_rate == 0
        assert result.profit_factor == 0
        assert not result.is_valid

    def test_historical_all_winning(self):
        trades = (TradeRecord("a", 10), TradeRecord("b", 20))
        result = calculate_kelly(KellyInputs(KellyMode.HISTORICAL, trades=trades))
        assert result.kelly_percentage == 0
        assert result.profit_factor == math.inf
        assert any("No losing trades" in w for w in result.warnings)

    def test_historical_no_data(self):
        result = calculate_kelly(KellyInputs(KellyMode.HISTORICAL, trades=(TradeRecord("a", 5, enabled=False),)))
        assert result.mode == KellyMode.HISTORICAL
        assert not result.is_valid
        assert result.risk_of_ruin == 1.0
        assert result.warnings

    def test_idempotent(self, sample_trades):
        calc = KellyCalculator()
        inputs = KellyInputs(KellyMode.HISTORICAL, trades=sample_trades)
        assert calc.calculate(inputs) == calc.calculate(inputs)


# =========================================================================
# Pyramid Tests
# =========================================================================


class TestPyramidPlanner:
    def test_geometric_long(self):
        result = plan_pyramid(_pyramid())
        assert [layer.level for layer in result.layers] == [1, 2, 3]
        assert [layer.price for layer in result.layers] == pytest.approx([50_000, 47_500, 45_125])
        assert [layer.quantity for layer in result.layers] == pytest.approx([1, 1.5, 2.25])
        assert result.total_quantity == pytest.approx(4.75)

    def test_running_totals(self):
        second = plan_pyramid(_pyramid()).layers[1]
        assert second.margin == pytest.approx(7_125)
        assert second.cumulative_quantity == pytest.approx(2.5)
        assert second.cumulative_margin == pytest.approx(12_125)
        assert second.average_price == pytest.approx(48_500)
        assert second.liquidation_price == pytest.approx(43_892.5)
        assert second.price_change == pytest.approx(-5)

    def test_final_summary(self):
        result = plan_pyramid(_pyramid())
        assert result.total_margin == pytest.approx(22_278.125)
        assert result.final_average_price == pytest.approx(222_781.25 / 4.75)
        assert result.final_liquidation_price == pytest.approx(result.layers[-1].liquidation_price)
        assert result.max_drawdown == pytest.approx(9.75)

    def test_short_prices_rise(self):
        result = plan_pyramid(_pyramid(side=SHORT))
        assert [layer.price for layer in result.layers] == pytest.approx([50_000, 52_500, 55_125])
        assert result.layers[0].liquidation_price == pytest.approx(54_750)
        assert result.max_drawdown == pytest.approx(10.25)

    def test_double_down(self):
        result = plan_pyramid(_pyramid(strategy=PyramidStrategy.DOUBLE_DOWN, geometric_multiplier=3))
        assert [layer.quantity for layer in result.layers] == pytest.approx([1, 2, 4])

    def test_long_average_falls(self):
        layers = plan_pyramid(_pyramid(layers=6)).layers
        averages = [layer.average_price for layer in layers]
        assert averages == sorted(averages, reverse=True)

    @pytest.mark.parametrize("overrides", [
        {"layers": 1},
        {"layers": 11},
        {"price_change_percent": 60},
        {"price_change_percent": 0},
        {"leverage": 0},
        {"initial_price": 0},
        {"initial_quantity": 0},
        {"geometric_multiplier": 0},
    ])
    def test_invalid_params(self, overrides):
        with pytest.raises(ValidationError):
            plan_pyramid(_pyramid(**overrides))

    def test_layer_count_must_be_integer(self):
        with pytest.raises(ValidationError, match="whole number"):
            plan_pyramid(_pyramid(layers=2.5))

    def test_boundaries_accepted(self):
        assert len(plan_pyramid(_pyramid(layers=2)).layers) == 2
        assert len(plan_pyramid(_pyramid(layers=10, price_change_percent=50)).layers) == 10

    def test_custom_config(self):
        planner = PyramidPlanner(config=PyramidConfig(max_layers=4))
        with pytest.raises(ValidationError):
            planner.calculate(_pyramid(layers=5))

    def test_to_frame(self):
        frame = plan_pyramid(_pyramid()).to_frame()
        assert isinstance(frame, pd.DataFrame)
        assert list(frame.index) == [1, 2, 3]
        assert frame.loc[2, "average_price"] == pytest.approx(48_500)

    def test_idempotent(self):
        planner = PyramidPlanner()
        assert planner.calculate(_pyramid()) == planner.calculate(_pyramid())


# =========================================================================
# Position Manager Tests
# =========================================================================


class TestAddPosition:
    def test_average_down_long(self, long_position):
        result = add_to_position(AddPositionInputs(long_position, add_price=45_000, add_quantity=1, add_margin=4_500))
        assert result.new_average_price == pytest.approx(47_500)
        assert result.new_total_quantity == pytest.approx(2)
        assert result.new_total_margin == pytest.approx(9_500)
        assert result.new_liquidation_price == pytest.approx(42_987.5)
        assert result.price_improvement == pytest.approx(-5)
        assert result.margin_increase == pytest.approx(90)
        assert result.warnings == []

    def test_long_add_above_entry_warns(self, long_position):
        result = add_to_position(AddPositionInputs(long_position, add_price=55_000, add_quantity=1, add_margin=5_500))
        assert len(result.warnings) == 1

    def test_short_add_below_entry_warns(self, short_position):
        result = add_to_position(AddPositionInputs(short_position, add_price=45_000, add_quantity=1, add_margin=4_500))
        assert result.warnings

    def test_short_average_up(self, short_position):
        result = add_to_position(AddPositionInputs(short_position, add_price=55_000, add_quantity=1, add_margin=5_500))
        assert result.new_average_price == pytest.approx(52_500)
        assert result.price_improvement == pytest.approx(-5)
        assert result.warnings == []

    def test_invalid_add(self, long_position):
        with pytest.raises(ValidationError) as exc_info:
            add_to_position(AddPositionInputs(long_position, add_price=0, add_quantity=-1, add_margin=0))
        assert set(exc_info.value.fields) == {"add_price", "add_quantity", "add_margin"}


class TestRiskAnalysis:
    def test_high_risk(self, long_position):
        result = analyze_position_risk(RiskAnalysisInputs(long_position))
        assert result.margin_ratio == pytest.approx(0.1)
        assert result.liquidation_price == pytest.approx(45_250)
        assert result.distance_to_liquidation == pytest.approx(9.5)
        assert result.leverage_risk == pytest.approx(3.2)
        assert result.risk_score == pytest.approx(57.35)
        assert result.risk_level == RiskLevel.HIGH
        assert len(result.recommendations) == 3

    def test_low_risk(self, long_position):
        position = Position(LONG, leverage=1, entry_price=50_000, quantity=1, margin=50_000)
        result = analyze_position_risk(RiskAnalysisInputs(position))
        assert result.risk_level == RiskLevel.LOW
        assert result.risk_score == pytest.approx(0.47)
        assert result.recommendations == []

    def test_extreme_risk(self):
        position = Position(LONG, leverage=100, entry_price=50_000, quantity=1, margin=500)
        result = PositionManager().analyze_risk(RiskAnalysisInputs(position))
        assert result.risk_level == RiskLevel.EXTREME
        assert result.risk_score == pytest.approx(91.55)
        assert len(result.recommendations) == 4

    def test_unrealized_pnl(self, long_position):
        result = analyze_position_risk(RiskAnalysisInputs(long_position, current_price=55_000))
        assert result.unrealized_pnl == pytest.approx(5_000)
        assert result.roe == pytest.approx(100)

    def test_score_capped(self, short_position):
        result = analyze_position_risk(RiskAnalysisInputs(short_position, current_price=60_000))
        assert 0 <= result.risk_score <= 100

    def test_invalid_current_price(self, long_position):
        with pytest.raises(ValidationError):
            analyze_position_risk(RiskAnalysisInputs(long_position, current_price=0))


# =========================================================================
# Fee Comparison Tests
# =========================================================================


class TestFeeComparison:
    def test_presets(self):
        assert len(EXCHANGE_PRESETS) == 10
        preset = get_exchange_preset("binance-vip0")
        assert preset.maker_fee == 0.02
        assert preset.taker_fee == 0.04

    def test_unknown_preset(self):
        with pytest.raises(KeyError):
            get_exchange_preset("nope")

    def test_fees(self):
        exchanges = (get_exchange_preset("binance-vip0"), get_exchange_preset("kucoin-lv0"))
        result = compare_fees(FeeComparisonInputs(1_000, 10, 50, 50, exchanges=exchanges))
        binance, kucoin = result.results
        assert binance.actual_trade_amount == pytest.approx(10_000)
        assert binance.maker_fee == pytest.approx(1.0)
        assert binance.taker_fee == pytest.approx(2.0)
        assert binance.total_fee == pytest.approx(3.0)
        assert binance.fee_rate == pytest.approx(0.03)
        assert kucoin.total_fee == pytest.approx(4.0)
        assert result.cheapest() is binance

    def test_default_exchanges(self):
        result = compare_fees(FeeComparisonInputs(1_000, 10, 100, 0))
        assert [r.exchange.id for r in result.results] == list(DEFAULT_EXCHANGE_IDS)

    def test_cheapest_first_wins_ties(self):
        a = ExchangeFeeSchedule("a", "A", 0.02, 0.04)
        b = ExchangeFeeSchedule("b", "B", 0.02, 0.04)
        result = compare_fees(FeeComparisonInputs(1_000, 5, 30, 70, exchanges=(a, b)))
        assert result.cheapest().exchange.id == "a"

    def test_to_frame(self):
        frame = compare_fees(FeeComparisonInputs(1_000, 10, 50, 50)).to_frame()
        assert list(frame.index) == list(DEFAULT_EXCHANGE_IDS)
        assert "total_fee" in frame.columns

    def test_ratios_must_sum_to_100(self):
        with pytest.raises(ValidationError, match="sum to 100"):
            compare_fees(FeeComparisonInputs(1_000, 10, 50, 40))

    def test_leverage_capped_at_ui_limit(self):
        with pytest.raises(ValidationError):
            FeeComparisonCalculator().calculate(FeeComparisonInputs(1_000, 126, 50, 50))

    def test_invalid_amount_and_ratio(self):
        with pytest.raises(ValidationError) as exc_info:
            compare_fees(FeeComparisonInputs(0, 10, -10, 110))
        assert set(exc_info.value.fields) == {"trade_amount", "maker_ratio"}
