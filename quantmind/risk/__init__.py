"""
Risk Module
===========
"""
from .positions import (
    Position,
    PositionSide,
    PositionStatus,
    ExitDecision,
    open_positions_for,
    average_entry_price,
    martingale_scale,
    check_exit
)

__all__ = [
    'Position',
    'PositionSide',
    'PositionStatus',
    'ExitDecision',
    'open_positions_for',
    'average_entry_price',
    'martingale_scale',
    'check_exit'
]
