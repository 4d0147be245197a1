"""
Spot Strategy Module

This module provides:
- PositionManager / SpotSession: FLAT / LONG position lifecycle
- SpotTrader: The polling cycle that feeds candles through the scorer
"""
from .position_manager import ExitReason, PositionManager, PositionState, SpotSession
from .trader import SpotTrader

__all__ = [
    "ExitReason",
    "PositionManager",
    "PositionState",
    "SpotSession",
    "SpotTrader",
]
