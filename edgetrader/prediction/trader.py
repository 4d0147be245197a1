"""
Prediction market trader.
Runs one scan cycle: rank, estimate, gate, size, execute.
"""

import asyncio
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from ..clients.anthropic_client import AnthropicClient
from ..clients.kalshi_client import KalshiClient
from ..config import RiskConfig, ScannerConfig, SizingConfig
from ..errors import AuthFailure, MalformedEstimate, NetworkFailure, TradingError
from ..execution.executor import OrderExecutor
from ..models import PlacedTrade, ScoredMarket
from ..risk.sizing import contracts_for, kelly_bet_size, order_cost
from ..utils.activity import ActivityLog
from ..utils.logger import get_logger, TradeLogger
from .edge_estimator import Recommendation, parse_recommendation
from .scanner import MarketScanner

logger = get_logger("prediction")
trade_logger = TradeLogger()


@dataclass
class ScanSession:
    """
    Account and bookkeeping state for one scanner run.

    Only touched from inside a scan cycle, which never overlaps another.
    """
    balance: float = 0.0
    start_balance: Optional[float] = None
    trades: deque = field(default_factory=lambda: deque(maxlen=60))
    trades_placed: int = 0
    total_wagered: float = 0.0
    activity: ActivityLog = field(default_factory=lambda: ActivityLog(maxlen=150))
    status: str = "idle"
    last_scan_at: Optional[datetime] = None

    @classmethod
    def create(cls, max_trade_history: int = 60, activity_size: int = 150) -> "ScanSession":
        return cls(
            trades=deque(maxlen=max_trade_history),
            activity=ActivityLog(maxlen=activity_size),
        )

    @property
    def session_pnl(self) -> float:
        if self.start_balance is None:
            return 0.0
        return self.balance - self.start_balance

    def recent_trades(self) -> list[PlacedTrade]:
        """Newest first."""
        return list(self.trades)


class PredictionTrader:
    """
    Scans open markets and bets where the estimator finds an edge.

    Usage:
        trader = PredictionTrader(kalshi, estimator, scanner, executor, session)
        await trader.connect()
        await trader.run_cycle()
    """

    def __init__(
        self,
        kalshi_client: KalshiClient,
        estimator: AnthropicClient,
        scanner: MarketScanner,
        executor: OrderExecutor,
        session: ScanSession,
        config: Optional[ScannerConfig] = None,
        sizing: Optional[SizingConfig] = None,
        risk: Optional[RiskConfig] = None
    ):
        self.kalshi_client = kalshi_client
        self.estimator = estimator
        self.scanner = scanner
        self.executor = executor
        self.session = session
        self.config = config or ScannerConfig()
        self.sizing = sizing or SizingConfig()
        self.risk = risk or RiskConfig(kill_switch=False, simulation_mode=True)

        self._scanning = False

    @property
    def scanning(self) -> bool:
        return self._scanning

    async def connect(self) -> float:
        """
        Verify credentials and record the starting balance.

        Raises:
            AuthFailure: credentials missing, unparseable or rejected
        """
        try:
            balance = await self.kalshi_client.connect()
        except AuthFailure as e:
            self.session.status = f"Connection failed: {e.message}"
            self.session.activity.add("error", "Connection failed", e.message)
            raise

        self.session.balance = balance
        self.session.start_balance = balance
        self.session.status = "connected"
        self.session.activity.add("scan", "Connected to Kalshi", f"Starting balance: ${balance:.2f}")
        return balance

    async def _refresh_balance(self) -> Optional[float]:
        try:
            balance = await self.kalshi_client.get_balance()
        except TradingError as e:
            logger.warning(f"Balance refresh failed: {e}")
            return None
        self.session.balance = balance
        return balance

    async def run_cycle(self) -> int:
        """
        Run one scan.

        Returns:
            Number of orders placed this cycle; 0 if a scan was already running
        """
        if self._scanning:
            logger.debug("Scan already in progress, skipping")
            return 0

        self._scanning = True
        self.session.status = "scanning"
        start = time.time()
        placed = 0
        analyzed = 0
        available = 0

        try:
            self.session.activity.add(
                "scan", "Scanning markets...",
                "Scoring by duration, favorite price range, volume and cheap NOs",
            )
            quotes = await self.kalshi_client.get_markets(
                limit=self.config.market_limit, status="open"
            )
            available = len(quotes)
            shortlist = self.scanner.rank(quotes)
            self.session.activity.add(
                "scan", f"Analyzing top {len(shortlist)} markets",
                f"Filtered from {available} open markets",
            )

            balance = await self._refresh_balance()
            if balance is None:
                balance = self.session.balance

            for index, candidate in enumerate(shortlist):
                if index:
                    await asyncio.sleep(self.config.candidate_delay_seconds)
                analyzed += 1
                try:
                    if await self._process(candidate, balance):
                        placed += 1
                except (TradingError, ValueError) as e:
                    logger.error(f"Candidate {candidate.ticker} failed: {e}")
                    self.session.activity.add("error", f"Failed: {candidate.quote.title[:50]}", str(e))

            await self._refresh_balance()
            self.session.status = "idle"
            self.session.activity.add("scan", f"Scan complete - {analyzed} markets analyzed")

        except TradingError as e:
            logger.error(f"Scan error: {e}")
            self.session.status = f"Scan error: {e.message}"
            self.session.activity.add("error", "Scan error", e.message)

        finally:
            self._scanning = False
            self.session.last_scan_at = datetime.now(timezone.utc)
            trade_logger.scan_completed(
                analyzed=analyzed,
                available=available,
                trades_placed=placed,
                duration_ms=(time.time() - start) * 1000,
            )

        return placed

    async def _estimate(self, candidate: ScoredMarket) -> Optional[Recommendation]:
        try:
            text = await self.estimator.estimate(candidate)
        except (NetworkFailure, MalformedEstimate, AuthFailure) as e:
            logger.warning(f"Estimate failed for {candidate.ticker}: {e}")
            self.session.activity.add("error", f"AI failed: {candidate.quote.title[:50]}", "Skipping")
            return None
        return parse_recommendation(text)

    def _passes_gate(self, rec: Recommendation) -> bool:
        return (
            rec.side is not None
            and rec.edge_cents >= self.config.min_edge_cents
            and rec.confidence >= self.config.min_confidence
        )

    async def _process(self, candidate: ScoredMarket, balance: float) -> bool:
        """Estimate, gate, size and execute one candidate. True if an order was placed."""
        rec = await self._estimate(candidate)
        if rec is None:
            return False

        quote = candidate.quote
        if not self._passes_gate(rec):
            trade_logger.candidate_skipped(
                ticker=candidate.ticker,
                edge=rec.edge_cents,
                confidence=rec.confidence,
                reason=rec.reason,
            )
            self.session.activity.add(
                "skip", quote.title[:68],
                f"SKIP - edge {rec.edge_cents}¢ / conf {rec.confidence * 100:.0f}% | {rec.reason}",
            )
            return False

        price = quote.yes_ask if rec.side == "yes" else quote.no_ask
        bet = kelly_bet_size(rec.edge_cents, rec.confidence, price, balance, self.sizing)
        contracts = contracts_for(bet, price)
        cost = order_cost(contracts, price)
        summary = (
            f"BUY {rec.side.upper()} x{contracts} @ {price}¢ | ${cost:.2f} | "
            f"+{rec.edge_cents}¢ edge | {rec.confidence * 100:.0f}% conf | {rec.reason}"
        )

        if self.risk.kill_switch:
            logger.debug("Kill switch enabled - not executing")
            self.session.activity.add("info", f"KILL SWITCH: {quote.title[:56]}", summary)
            return False

        if self.risk.simulation_mode:
            logger.info(
                "[SIMULATION] Would execute trade",
                extra={
                    "ticker": candidate.ticker,
                    "side": rec.side,
                    "contracts": contracts,
                    "price": price,
                    "cost": cost,
                    "edge_cents": rec.edge_cents,
                    "strategy": rec.strategy_tag.value
                }
            )
            self.session.activity.add("info", f"SIMULATED: {quote.title[:58]}", summary)
            return False

        self.session.activity.add("trade", f"TRADE: {quote.title[:62]}", summary)
        result = await self.executor.execute(candidate.ticker, rec.side, contracts, price)

        if not result.success:
            self.session.activity.add("error", f"Order failed: {candidate.ticker}", result.error or "Unknown")
            return False

        self.session.activity.add(
            "trade", f"{result.order_type.value.capitalize()} order placed: {candidate.ticker}",
            f"{rec.side.upper()} x{contracts}"
            + (f" @ {result.order.price}¢" if result.order.price is not None else ""),
        )
        self.session.trades.appendleft(PlacedTrade(
            ticker=candidate.ticker,
            side=rec.side,
            contracts=contracts,
            cost=cost,
            edge=rec.edge_cents,
            confidence=rec.confidence,
            strategy=rec.strategy_tag.value,
            order_type=result.order_type,
        ))
        self.session.trades_placed += 1
        self.session.total_wagered += cost
        return True
