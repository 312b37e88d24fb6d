"""
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest.
"""

import pytest
from typing import List, Optional, Sequence

from quantmind.config import EngineConfig, StrategyParameters
from quantmind.data.market_data import Candle
from quantmind.risk.positions import Position, PositionSide

MINUTE_MS = 60_000
START_MS = 1_700_000_000_000


def make_candles(prices: Sequence[float], symbol: str = "BTC",
                 volumes: Optional[Sequence[float]] = None,
                 start: int = START_MS) -> List[Candle]:
    """One 1m candle per close; open is the previous close."""
    candles = []
    prev = prices[0] if len(prices) else 0.0
    for i, price in enumerate(prices):
        volume = volumes[i] if volumes is not None else 100.0
        candles.append(Candle(
            symbol=symbol,
            timestamp=start + i * MINUTE_MS,
            open=prev,
            high=max(prev, price),
            low=min(prev, price),
            close=price,
            volume=volume
        ))
        prev = price
    return candles


def make_position(entry_price: float, quantity: float = 1.0, symbol: str = "BTC",
                  side: PositionSide = PositionSide.LONG) -> Position:
    return Position(symbol=symbol, side=side, entry_price=entry_price, quantity=quantity)


def geometric(start: float, step: float, n: int) -> List[float]:
    """n prices compounding by `step` per bar."""
    return [start * (1 + step) ** i for i in range(n)]


@pytest.fixture
def candle_factory():
    return make_candles


@pytest.fixture
def params() -> StrategyParameters:
    return StrategyParameters()


@pytest.fixture
def fast_params() -> StrategyParameters:
    """Short periods so crossovers happen within a few bars."""
    return StrategyParameters(fast_period=3, slow_period=5)


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def flat_candles() -> List[Candle]:
    return make_candles([100.0] * 30)


@pytest.fixture
def uptrend_candles() -> List[Candle]:
    return make_candles(geometric(100.0, 0.005, 60))


@pytest.fixture
def downtrend_candles() -> List[Candle]:
    return make_candles(geometric(100.0, -0.005, 60))


@pytest.fixture
def choppy_candles() -> List[Candle]:
    prices = [100.0]
    for i in range(59):
        prices.append(prices[-1] * (1.03 if i % 2 == 0 else 0.97))
    return make_candles(prices)
