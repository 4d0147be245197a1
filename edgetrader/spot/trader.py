"""
Spot trader.
One poll: fetch candles, score the latest bar, apply position rules.
"""

from typing import Optional

from ..clients.kraken_client import KrakenClient
from ..errors import NetworkFailure
from ..models import TradeRecord, TradeSide
from ..signals import Signal, SignalScorer
from ..utils.activity import ActivityLog
from ..utils.logger import get_logger
from .position_manager import PositionManager, SpotSession

logger = get_logger("spot")


class SpotTrader:
    """
    Paper-trades a single spot pair from Kraken candles.

    A failed fetch leaves the session untouched and is reported through
    `status`; the next poll simply tries again.
    """

    def __init__(
        self,
        kraken_client: KrakenClient,
        scorer: SignalScorer,
        manager: PositionManager,
        session: SpotSession,
        activity_size: int = 50
    ):
        self.kraken_client = kraken_client
        self.scorer = scorer
        self.manager = manager
        self.session = session
        self.activity = ActivityLog(maxlen=activity_size)

        self.status = "idle"
        self.last_signal: Optional[Signal] = None

    async def run_cycle(self) -> Optional[TradeRecord]:
        """
        Run one poll.

        Returns:
            The trade made on this poll, if any
        """
        try:
            candles = await self.kraken_client.fetch_candles()
        except NetworkFailure as e:
            logger.error(f"Candle fetch failed: {e}")
            self.status = f"Error: {e.message}"
            self.activity.add("error", "Fetch failed", e.message)
            return None

        closes = [c.close for c in candles]
        volumes = [c.volume for c in candles]
        price = closes[-1]

        signal = self.scorer.score(closes, volumes)
        self.last_signal = signal
        trade = self.manager.on_price(self.session, signal, price)

        self.status = f"{signal.action.value} ({signal.confidence}%) @ {price:,.2f}"
        if trade is not None:
            self._record(trade)

        logger.debug(
            f"Spot poll: price={price} action={signal.action.value} "
            f"confidence={signal.confidence} state={self.session.state.value}"
        )
        return trade

    def _record(self, trade: TradeRecord) -> None:
        if trade.type == TradeSide.BUY:
            self.activity.add(
                "buy", f"BUY {trade.amount:.6f} @ ${trade.price:,.2f}", trade.reason
            )
        else:
            self.activity.add(
                "sell", f"SELL {trade.amount:.6f} @ ${trade.price:,.2f}",
                f"{trade.reason} | P&L ${trade.pnl:+.2f}",
            )

    def summary(self) -> dict:
        """Portfolio metrics at the last seen price."""
        session = self.session
        return {
            "state": session.state.value,
            "cash": session.cash,
            "portfolio_value": session.portfolio_value(),
            "total_return_pct": session.total_return_pct(),
            "realized_pnl": session.realized_pnl,
            "unrealized_pnl": session.unrealized_pnl(),
            "last_price": session.last_price,
            "trades": len(session.trades),
        }
