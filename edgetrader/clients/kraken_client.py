"""
Kraken public OHLC client.
Fetches the candle series that drives the spot strategy.
"""

import asyncio
from typing import Optional

import aiohttp

from ..errors import NetworkFailure
from ..models import Candle
from ..utils.logger import get_logger

logger = get_logger("kraken")


def parse_ohlc_result(result: dict, preferred_key: str) -> list[list]:
    """
    Pick the candle rows out of a Kraken `result` object.

    Kraken keys the rows by its own pair name (XXBTZUSD for XBTUSD) next to a
    `last` cursor. The preferred key wins; otherwise the first key holding a
    list of rows is used.
    """
    rows = result.get(preferred_key)
    if isinstance(rows, list):
        return rows

    for key, value in result.items():
        if key != "last" and isinstance(value, list):
            return value

    raise NetworkFailure(
        "No candle series in OHLC response",
        details={"keys": list(result.keys())},
    )


def parse_candle(row: list) -> Candle:
    """Convert `[time, open, high, low, close, vwap, volume, count]`."""
    return Candle(
        timestamp=float(row[0]),
        open=float(row[1]),
        high=float(row[2]),
        low=float(row[3]),
        close=float(row[4]),
        volume=float(row[6]),
    )


class KrakenClient:
    """
    Client for Kraken's public market data.

    No authentication is needed for OHLC data.
    """

    BASE_URL = "https://api.kraken.com/0/public"

    def __init__(
        self,
        pair: str = "XBTUSD",
        result_key: str = "XXBTZUSD",
        interval_minutes: int = 15,
        window: int = 60,
        timeout_seconds: float = 10.0
    ):
        """
        Initialize Kraken client.

        Args:
            pair: Kraken pair to request
            result_key: Key Kraken uses for the pair in responses
            interval_minutes: Candle interval
            window: Number of most recent candles to keep
            timeout_seconds: Total timeout per request
        """
        self.pair = pair
        self.result_key = result_key
        self.interval_minutes = interval_minutes
        self.window = window
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: Optional[aiohttp.ClientSession] = None

    async def initialize(self) -> None:
        """Initialize HTTP session."""
        if not self._session:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        logger.info("Kraken client initialized")

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def _request(self, endpoint: str, params: Optional[dict] = None) -> dict:
        """Make HTTP request to the public API."""
        if not self._session:
            await self.initialize()

        url = f"{self.BASE_URL}{endpoint}"

        try:
            async with self._session.get(url, params=params) as response:
                response.raise_for_status()
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Kraken request failed: {e}")
            raise NetworkFailure(f"Kraken request failed: {e}") from e

        errors = data.get("error") or []
        if errors:
            raise NetworkFailure(f"Kraken error: {errors[0]}", details={"errors": errors})

        return data.get("result") or {}

    async def fetch_candles(self) -> list[Candle]:
        """
        Fetch the most recent candles, oldest first.

        Returns:
            Up to `window` candles

        Raises:
            NetworkFailure: request, API or parse failure
        """
        result = await self._request(
            "/OHLC",
            params={"pair": self.pair, "interval": str(self.interval_minutes)},
        )
        rows = parse_ohlc_result(result, self.result_key)

        try:
            candles = [parse_candle(row) for row in rows[-self.window:]]
        except (IndexError, TypeError, ValueError) as e:
            raise NetworkFailure(f"Malformed candle row: {e}") from e

        if not candles:
            raise NetworkFailure("Empty candle series")

        logger.debug(f"Fetched {len(candles)} candles for {self.pair}")
        return candles
