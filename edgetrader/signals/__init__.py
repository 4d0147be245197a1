"""
Signal generation.

This module provides:
- SignalScorer: Rule-based scoring of indicator readings
- Signal / SignalAction: The resulting BUY / SELL / WAIT decision
"""
from .scorer import (
    IndicatorSnapshot,
    Polarity,
    Reason,
    Signal,
    SignalAction,
    SignalScorer,
)

__all__ = [
    "IndicatorSnapshot",
    "Polarity",
    "Reason",
    "Signal",
    "SignalAction",
    "SignalScorer",
]
