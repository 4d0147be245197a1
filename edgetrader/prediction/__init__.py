"""
Prediction Market Module

This module provides:
- MarketScanner: Ranks open markets into a short list
- parse_recommendation: Structured reading of an estimator's analysis
- PredictionTrader: The scan cycle that ties them to sizing and execution
"""
from .edge_estimator import ParseKind, Recommendation, StrategyTag, extract_reason, parse_recommendation
from .scanner import MarketScanner, score_market
from .trader import PredictionTrader, ScanSession

__all__ = [
    "MarketScanner",
    "ParseKind",
    "PredictionTrader",
    "Recommendation",
    "ScanSession",
    "StrategyTag",
    "extract_reason",
    "parse_recommendation",
    "score_market",
]
