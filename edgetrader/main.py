"""
Main entry point for Edge Trader.
Wires clients, traders and periodic drivers and runs the event loop.
"""

import argparse
import asyncio
import signal
import sys
from typing import Optional

from .clients.anthropic_client import AnthropicClient
from .clients.kalshi_client import KalshiClient
from .clients.kraken_client import KrakenClient
from .config import load_config, Config
from .errors import AuthFailure
from .execution.executor import OrderExecutor
from .prediction.scanner import MarketScanner
from .prediction.trader import PredictionTrader, ScanSession
from .scheduler import PeriodicDriver
from .signals.scorer import SignalScorer
from .spot.position_manager import PositionManager, SpotSession
from .spot.trader import SpotTrader
from .utils.logger import setup_logging, get_logger

logger = get_logger("main")

MODES = ("spot", "scanner", "both")


class EdgeTraderBot:
    """
    Main bot orchestrator.

    Coordinates:
    - Spot scalper polling Kraken candles
    - Prediction market scanner on Kalshi
    - Risk controls
    """

    def __init__(self, config: Config, mode: str = "both"):
        """Initialize bot with configuration."""
        self.config = config
        self.mode = mode
        self._shutdown_event = asyncio.Event()
        self._drivers: list[PeriodicDriver] = []

        self.kraken_client: Optional[KrakenClient] = None
        self.kalshi_client: Optional[KalshiClient] = None
        self.anthropic_client: Optional[AnthropicClient] = None
        self.spot_trader: Optional[SpotTrader] = None
        self.prediction_trader: Optional[PredictionTrader] = None

        if mode in ("spot", "both"):
            self._build_spot()
        if mode in ("scanner", "both"):
            self._build_scanner()

    def _build_spot(self) -> None:
        spot = self.config.spot
        self.kraken_client = KrakenClient(
            pair=spot.pair,
            result_key=spot.result_key,
            interval_minutes=spot.interval_minutes,
            window=spot.candle_window,
            timeout_seconds=self.config.http.timeout_seconds
        )
        self.spot_trader = SpotTrader(
            kraken_client=self.kraken_client,
            scorer=SignalScorer(spot.scoring),
            manager=PositionManager(spot.strategy),
            session=SpotSession.create(spot.starting_cash, spot.strategy.max_trade_history)
        )

    def _build_scanner(self) -> None:
        kalshi = self.config.kalshi
        anthropic = self.config.anthropic
        self.kalshi_client = KalshiClient(
            key_id=kalshi.api_key_id,
            private_key=kalshi.private_key,
            base_url=kalshi.base_url,
            timeout_seconds=self.config.http.timeout_seconds
        )
        self.anthropic_client = AnthropicClient(
            api_key=anthropic.api_key,
            model=anthropic.model,
            max_tokens=anthropic.max_tokens,
            web_search=anthropic.web_search,
            base_url=anthropic.base_url,
            timeout_seconds=self.config.http.estimator_timeout_seconds
        )
        self.prediction_trader = PredictionTrader(
            kalshi_client=self.kalshi_client,
            estimator=self.anthropic_client,
            scanner=MarketScanner(self.config.scanner),
            executor=OrderExecutor(self.kalshi_client),
            session=ScanSession.create(self.config.scanner.max_trade_history),
            config=self.config.scanner,
            sizing=self.config.sizing,
            risk=self.config.risk
        )

    async def initialize(self) -> None:
        """Open sessions and verify credentials."""
        logger.info("Initializing Edge Trader", extra={"mode": self.mode})

        if self.config.risk.kill_switch:
            logger.warning("Kill switch is enabled - bot will not trade")
        if self.config.risk.simulation_mode:
            logger.info("[SIMULATION] Orders will be logged, not sent")

        if self.kraken_client:
            await self.kraken_client.initialize()

        if self.prediction_trader:
            if not self.config.kalshi.has_credentials:
                raise AuthFailure("KALSHI_API_KEY_ID and a private key are required for the scanner")
            await self.anthropic_client.initialize()
            balance = await self.prediction_trader.connect()
            logger.info("Kalshi balance", extra={"balance": balance})

        logger.info("Bot initialized successfully")

    async def run(self) -> None:
        """Start the periodic drivers and wait for shutdown."""
        if self.spot_trader:
            self._drivers.append(PeriodicDriver(
                self.spot_trader.run_cycle, self.config.spot.poll_seconds, name="spot"
            ))
        if self.prediction_trader:
            self._drivers.append(PeriodicDriver(
                self.prediction_trader.run_cycle,
                self.config.scanner.scan_interval_seconds,
                name="scanner"
            ))

        for driver in self._drivers:
            driver.start()

        await self._shutdown_event.wait()

    def _log_stats(self) -> None:
        """Log final statistics."""
        if self.spot_trader:
            logger.info("Spot statistics", extra=self.spot_trader.summary())
        if self.prediction_trader:
            session = self.prediction_trader.session
            logger.info(
                "Scanner statistics",
                extra={
                    "balance": session.balance,
                    "session_pnl": session.session_pnl,
                    "trades_placed": session.trades_placed,
                    "total_wagered": session.total_wagered
                }
            )

    async def shutdown(self) -> None:
        """Gracefully shutdown the bot."""
        logger.info("Shutting down bot")

        for driver in self._drivers:
            driver.cancel()
        for driver in self._drivers:
            await driver.wait()

        for client in (self.kraken_client, self.kalshi_client, self.anthropic_client):
            if client:
                await client.close()

        self._log_stats()
        logger.info("Bot shutdown complete")

    def request_shutdown(self) -> None:
        """Request graceful shutdown."""
        self._shutdown_event.set()


def setup_signal_handlers(bot: EdgeTraderBot) -> None:
    """Set up signal handlers for graceful shutdown."""
    def signal_handler(sig, frame):
        logger.info(f"Received signal {sig}")
        bot.request_shutdown()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="edgetrader", description="Spot scalper and prediction market scanner")
    parser.add_argument("mode", nargs="?", choices=MODES, default="both", help="which strategy loop to run")
    return parser.parse_args(argv)


async def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    # Load configuration
    try:
        config = load_config()
    except (ValueError, OSError) as e:
        print(f"Configuration error: {e}")
        sys.exit(1)

    # Set up logging
    setup_logging(
        level=config.logging.log_level,
        json_format=config.logging.json_logging
    )

    logger.info("Starting Edge Trader", extra={"mode": args.mode})

    bot = EdgeTraderBot(config, mode=args.mode)
    setup_signal_handlers(bot)

    try:
        await bot.initialize()
        await bot.run()
    except AuthFailure as e:
        logger.error(f"Authentication failed: {e}")
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        await bot.shutdown()


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
