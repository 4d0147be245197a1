"""
Risk Management Module

Position sizing for prediction market bets.
"""
from .sizing import contracts_for, kelly_bet_size, order_cost

__all__ = ["contracts_for", "kelly_bet_size", "order_cost"]
