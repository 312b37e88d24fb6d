"""
Position Snapshots
==================
Read-only view of the positions the tracking side reports as open.

The engine only ever filters and reads these; opening, closing, margin and
P&L belong to the position tracker.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple
import logging

from ..config import StrategyParameters

if TYPE_CHECKING:
    from ..alpha.signals import SignalType

logger = logging.getLogger(__name__)


class PositionSide(Enum):
    LONG = "long"
    SHORT = "short"


class PositionStatus(Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class Position:
    """One position lot (Martingale may hold several per asset)."""
    symbol: str
    side: PositionSide
    entry_price: float
    quantity: float
    status: PositionStatus = PositionStatus.OPEN
    id: str = ""
    opened_at: Optional[int] = None  # epoch ms

    @property
    def is_open(self) -> bool:
        return self.status == PositionStatus.OPEN

    @property
    def cost_basis(self) -> float:
        return self.quantity * self.entry_price


@dataclass(frozen=True)
class ExitDecision:
    """Whether the open lots of an asset should be closed on this signal."""
    symbol: str
    should_close: bool
    positions: Tuple[Position, ...] = field(default_factory=tuple)
    reason: str = ""


def open_positions_for(positions: Sequence[Position], symbol: Optional[str]) -> List[Position]:
    """Open lots for one asset, in their original order."""
    if symbol is None:
        return []
    return [p for p in positions if p.symbol == symbol and p.is_open]


def average_entry_price(positions: Sequence[Position]) -> float:
    """Quantity-weighted average entry across lots (0 with no quantity)."""
    total_qty = sum(p.quantity for p in positions)
    if total_qty <= 0:
        return 0.0
    return sum(p.cost_basis for p in positions) / total_qty


def martingale_scale(params: StrategyParameters, open_lots: int) -> float:
    """Size multiplier for the next Martingale lot given the lots already open."""
    return params.martingale_volume_multiplier ** max(open_lots, 0)


def check_exit(positions: Sequence[Position], symbol: str,
               signal: 'SignalType') -> ExitDecision:
    """
    Reverse-signal exit check.

    Longs are closed on a SELL, shorts on a BUY. The side of the first open
    lot decides the direction of the whole stack.
    """
    # runtime import: alpha imports this module
    from ..alpha.signals import SignalType

    lots = open_positions_for(positions, symbol)
    if not lots:
        return ExitDecision(symbol=symbol, should_close=False, reason="No open positions")

    is_long = lots[0].side == PositionSide.LONG

    if is_long and signal == SignalType.SELL:
        reason = f"SELL signal against {len(lots)} long lot(s)"
    elif not is_long and signal == SignalType.BUY:
        reason = f"BUY signal against {len(lots)} short lot(s)"
    else:
        return ExitDecision(symbol=symbol, should_close=False, positions=tuple(lots),
                            reason=f"{signal.name} does not reverse open positions")

    logger.info(f"Exit triggered for {symbol}: {reason}")
    return ExitDecision(symbol=symbol, should_close=True, positions=tuple(lots), reason=reason)
