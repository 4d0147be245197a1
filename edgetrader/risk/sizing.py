"""
Half-Kelly position sizing for binary contracts.

Contracts pay 100¢ on a win. At an ask of `price` cents:
    b = (100 - price) / price       net odds received
    f = (b * p - q) / b             Kelly fraction, p = confidence, q = 1 - p

The bet is half of f, capped at a share of the balance and clamped to
fixed dollar bounds.
"""
import math
from typing import Optional

from ..config import SizingConfig


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def kelly_bet_size(
    edge: int,
    confidence: float,
    price: int,
    balance: float,
    config: Optional[SizingConfig] = None
) -> int:
    """
    Dollar amount to bet on one side of a market.

    Args:
        edge: Estimated mispricing in cents; carried for logging, the
            Kelly fraction depends on confidence and price only
        confidence: Estimated win probability in [0, 1]
        price: Ask of the chosen side in cents, 0 < price < 100
        balance: Available balance in dollars

    Returns:
        Whole-dollar bet, always within [min_bet, max_bet]
    """
    if not 0 < price < 100:
        raise ValueError(f"price must be between 0 and 100 cents, got {price}")

    cfg = config or SizingConfig()
    p = confidence
    q = 1 - p
    b = (100 - price) / price

    kelly = (p * b - q) / b
    fraction = max(0.0, kelly * cfg.kelly_fraction)
    raw = balance * min(fraction, cfg.max_balance_fraction)

    return _round_half_up(min(max(raw, cfg.min_bet), cfg.max_bet))


def contracts_for(bet: float, price: int) -> int:
    """Whole contracts a bet buys at `price` cents; never fewer than one."""
    if price <= 0:
        raise ValueError(f"price must be positive, got {price}")
    return max(1, math.floor(bet * 100 / price))


def order_cost(contracts: int, price: int) -> float:
    """Dollar cost of `contracts` at `price` cents."""
    return contracts * price / 100
