"""
Position Snapshot Testing Suite

Run with: pytest tests/test_positions.py -v
"""

import pytest

from quantmind.config import StrategyParameters
from quantmind.risk.positions import (
    Position,
    PositionSide,
    PositionStatus,
    open_positions_for,
    average_entry_price,
    martingale_scale,
    check_exit,
)
from quantmind.alpha.signals import SignalType
from conftest import make_position


class TestPositionHelpers:

    def test_filters_by_symbol_and_status(self):
        positions = [
            make_position(100.0),
            make_position(50.0, symbol="ETH"),
            Position("BTC", PositionSide.LONG, 90.0, 1.0, status=PositionStatus.CLOSED),
            make_position(95.0),
        ]
        lots = open_positions_for(positions, "BTC")
        assert [p.entry_price for p in lots] == [100.0, 95.0]

    def test_no_symbol_means_no_lots(self):
        assert open_positions_for([make_position(100.0)], None) == []

    def test_average_entry_is_quantity_weighted(self):
        lots = [make_position(100.0, 1.0), make_position(90.0, 3.0)]
        assert average_entry_price(lots) == pytest.approx(92.5)

    def test_average_entry_without_quantity(self):
        assert average_entry_price([]) == 0.0

    @pytest.mark.parametrize("lots,expected", [(0, 1.0), (1, 2.0), (3, 8.0)])
    def test_martingale_scale(self, lots, expected):
        params = StrategyParameters(martingale_volume_multiplier=2.0)
        assert martingale_scale(params, lots) == pytest.approx(expected)


class TestReverseSignalExit:

    def test_sell_closes_all_long_lots(self):
        positions = [make_position(100.0), make_position(98.0), make_position(10.0, symbol="ETH")]
        decision = check_exit(positions, "BTC", SignalType.SELL)
        assert decision.should_close
        assert len(decision.positions) == 2

    def test_buy_closes_short_lots(self):
        positions = [make_position(100.0, side=PositionSide.SHORT)]
        assert check_exit(positions, "BTC", SignalType.BUY).should_close

    @pytest.mark.parametrize("side,signal", [
        (PositionSide.LONG, SignalType.BUY),
        (PositionSide.LONG, SignalType.NEUTRAL),
        (PositionSide.SHORT, SignalType.SELL),
        (PositionSide.SHORT, SignalType.NEUTRAL),
    ])
    def test_non_reversing_signal_holds(self, side, signal):
        decision = check_exit([make_position(100.0, side=side)], "BTC", signal)
        assert not decision.should_close
        assert len(decision.positions) == 1

    def test_first_lot_decides_direction(self):
        positions = [make_position(100.0), make_position(99.0, side=PositionSide.SHORT)]
        assert check_exit(positions, "BTC", SignalType.SELL).should_close
        assert not check_exit(positions, "BTC", SignalType.BUY).should_close

    def test_nothing_open(self):
        decision = check_exit([], "BTC", SignalType.SELL)
        assert not decision.should_close
        assert decision.positions == ()
