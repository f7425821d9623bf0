"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.futures_calculator.config import PositionSide  # noqa: E402
from src.futures_calculator.models import Position, TradeRecord  # noqa: E402


@pytest.fixture
def long_position():
    """10x long, 1 BTC at 50,000 backed by 5,000 margin."""
    return Position(
        side=PositionSide.LONG,
        leverage=10,
        entry_price=50_000,
        quantity=1,
        margin=5_000,
        symbol="BTCUSDT",
    )


@pytest.fixture
def short_position():
    return Position(
        side=PositionSide.SHORT,
        leverage=10,
        entry_price=50_000,
        quantity=1,
        margin=5_000,
        symbol="BTCUSDT",
    )


@pytest.fixture
def sample_trades():
    """Three wins averaging 150 and two losses averaging 75."""
    return (
        TradeRecord("t1", 100),
        TradeRecord("t2", -50),
        TradeRecord("t3", 200),
        TradeRecord("t4", -100),
        TradeRecord("t5", 150),
    )
