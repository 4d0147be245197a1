"""
Order execution for prediction market bets.
Places a maker limit order and falls back to a single market order.
"""

import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from ..clients.kalshi_client import KalshiClient
from ..errors import AuthFailure, NetworkFailure, OrderRejected
from ..models import Order, OrderType
from ..utils.logger import get_logger, TradeLogger

logger = get_logger("executor")
trade_logger = TradeLogger()


def new_client_id(order_type: OrderType) -> str:
    """Client order id, unique per submission attempt."""
    return f"bot_{int(time.time() * 1000)}_{order_type.value}_{uuid.uuid4().hex[:8]}"


@dataclass
class ExecutionResult:
    """Outcome of one execute() call."""
    success: bool
    order: Optional[Order] = None
    error: Optional[str] = None
    attempts: list[Order] = field(default_factory=list)

    @property
    def order_type(self) -> Optional[OrderType]:
        return self.order.type if self.order else None


class OrderExecutor:
    """
    Submits one bet with maker-then-taker fallback.

    Flow:
    1. LIMIT one cent inside the quote (never below 1)
    2. On rejection, auth refusal or transport failure, one MARKET order for the same count
    3. Both failing is reported in the result, never raised
    """

    def __init__(self, kalshi_client: KalshiClient):
        """
        Initialize order executor.

        Args:
            kalshi_client: Authenticated client used for submission
        """
        self.kalshi_client = kalshi_client

    @staticmethod
    def limit_price(price: int) -> int:
        return max(1, price - 1)

    async def _submit(self, order: Order) -> None:
        await self.kalshi_client.create_order(order)
        trade_logger.order_placed(
            client_id=order.client_id,
            ticker=order.ticker,
            side=order.side,
            order_type=order.type.value,
            count=order.count,
            price=order.price,
        )

    async def execute(self, ticker: str, side: str, count: int, price: int) -> ExecutionResult:
        """
        Buy `count` contracts of `side`.

        Args:
            ticker: Market ticker
            side: "yes" or "no"
            count: Number of contracts
            price: Current ask of the side in cents

        Returns:
            ExecutionResult with the accepted order, or the last error
        """
        attempts: list[Order] = []

        limit_order = Order(
            ticker=ticker,
            side=side,
            type=OrderType.LIMIT,
            count=count,
            client_id=new_client_id(OrderType.LIMIT),
            price=self.limit_price(price),
        )
        attempts.append(limit_order)

        try:
            await self._submit(limit_order)
            return ExecutionResult(success=True, order=limit_order, attempts=attempts)
        except (OrderRejected, NetworkFailure, AuthFailure) as e:
            trade_logger.order_failed(
                ticker=ticker,
                order_type=OrderType.LIMIT.value,
                reason="limit order not accepted, falling back to market",
                error=str(e),
            )

        market_order = Order(
            ticker=ticker,
            side=side,
            type=OrderType.MARKET,
            count=count,
            client_id=new_client_id(OrderType.MARKET),
        )
        attempts.append(market_order)

        try:
            await self._submit(market_order)
            return ExecutionResult(success=True, order=market_order, attempts=attempts)
        except (OrderRejected, NetworkFailure, AuthFailure) as e:
            trade_logger.order_failed(
                ticker=ticker,
                order_type=OrderType.MARKET.value,
                reason="market order not accepted",
                error=str(e),
            )
            logger.error(f"Order failed for {ticker}: {e}")
            return ExecutionResult(success=False, error=str(e), attempts=attempts)
