"""
Tests for exchange client parsing and request handling.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from edgetrader.clients.anthropic_client import AnthropicClient, build_prompt
from edgetrader.clients.kalshi_client import KalshiClient
from edgetrader.clients.kraken_client import KrakenClient, parse_candle, parse_ohlc_result
from edgetrader.errors import AuthFailure, MalformedEstimate, NetworkFailure, OrderRejected
from edgetrader.models import MarketQuote, Order, OrderType, ScoredMarket


def kraken_row(t: int, close: float, volume: float = 2.5) -> list:
    return [t, "100.0", "101.0", "99.0", str(close), "100.2", str(volume), 42]


class FakeResponse:
    """Minimal aiohttp response stand-in."""

    def __init__(self, status: int, data):
        self.status = status
        self._data = data

    async def json(self, content_type=None):
        if isinstance(self._data, Exception):
            raise self._data
        return self._data

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        return False


@pytest.fixture(scope="module")
def pem_key():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


def kalshi_with_responses(pem_key: str, *responses) -> KalshiClient:
    client = KalshiClient("key-id", pem_key, base_url="https://api.example/trade-api/v2")
    session = MagicMock()
    session.request = MagicMock(side_effect=list(responses))
    client._session = session
    return client


class TestKrakenParsing:
    """Tests for OHLC payload handling."""

    def test_preferred_key(self):
        rows = [kraken_row(1, 100.5)]
        result = {"XXBTZUSD": rows, "XBTUSD": [], "last": 1}

        assert parse_ohlc_result(result, "XXBTZUSD") is rows

    def test_first_list_fallback(self):
        """Unknown pair key falls back to the first candle list."""
        rows = [kraken_row(1, 100.5)]

        assert parse_ohlc_result({"last": 5, "XBTUSD": rows}, "XXBTZUSD") is rows

    def test_no_series(self):
        with pytest.raises(NetworkFailure):
            parse_ohlc_result({"last": 5}, "XXBTZUSD")

    def test_candle_fields(self):
        candle = parse_candle(kraken_row(1700000000, 100.5, 3.25))

        assert candle.close == 100.5
        assert candle.volume == 3.25
        assert candle.timestamp == 1700000000.0

    @pytest.mark.asyncio
    async def test_fetch_keeps_latest_window(self):
        """Only the last `window` candles are returned."""
        client = KrakenClient(window=60)
        client._request = AsyncMock(return_value={
            "XXBTZUSD": [kraken_row(i, 100 + i) for i in range(720)],
            "last": 719,
        })

        candles = await client.fetch_candles()

        assert len(candles) == 60
        assert candles[-1].close == 819.0
        assert candles[0].close == 760.0

    @pytest.mark.asyncio
    async def test_malformed_row(self):
        client = KrakenClient()
        client._request = AsyncMock(return_value={"XXBTZUSD": [[1, 2]]})

        with pytest.raises(NetworkFailure):
            await client.fetch_candles()


class TestKalshiClient:
    """Tests for signed Kalshi requests."""

    @pytest.mark.asyncio
    async def test_connect_reads_balance(self, pem_key):
        client = kalshi_with_responses(pem_key, FakeResponse(200, {"balance": 12345}))

        balance = await client.connect()

        assert balance == 123.45
        assert client.connected

    @pytest.mark.asyncio
    async def test_signs_full_path(self, pem_key):
        """Signed path includes the API prefix and omits the query."""
        client = kalshi_with_responses(pem_key, FakeResponse(200, {"balance": 0}))
        await client.connect()

        assert client._sign_path("/markets?limit=50") == "/trade-api/v2/markets"
        headers = client._session.request.call_args.kwargs["headers"]
        assert headers["KALSHI-ACCESS-KEY"] == "key-id"
        assert "KALSHI-ACCESS-SIGNATURE" in headers

    @pytest.mark.asyncio
    async def test_rejected_connect_clears_credentials(self, pem_key):
        client = kalshi_with_responses(pem_key, FakeResponse(401, {"error": {"message": "bad key"}}))

        with pytest.raises(AuthFailure):
            await client.connect()

        assert not client.connected
        assert client.private_key == ""

    @pytest.mark.asyncio
    async def test_bad_key_fails_connect(self):
        client = KalshiClient("key-id", "garbage")

        with pytest.raises(AuthFailure):
            await client.connect()
        assert not client.connected

    @pytest.mark.asyncio
    async def test_markets(self, pem_key):
        client = kalshi_with_responses(
            pem_key,
            FakeResponse(200, {"balance": 100}),
            FakeResponse(200, {"markets": [{"ticker": "A", "yes_ask": 65}, {"ticker": "B"}]}),
        )
        await client.connect()

        markets = await client.get_markets(limit=50)

        assert [m.ticker for m in markets] == ["A", "B"]
        assert markets[1].yes_ask == 50
        params = client._session.request.call_args.kwargs["params"]
        assert params == {"limit": "50", "status": "open"}

    @pytest.mark.asyncio
    async def test_malformed_market_is_network_failure(self, pem_key):
        """Unparseable market fields surface as a NetworkFailure."""
        client = kalshi_with_responses(
            pem_key,
            FakeResponse(200, {"balance": 100}),
            FakeResponse(200, {"markets": [{"ticker": "A", "yes_ask": "n/a"}]}),
        )
        await client.connect()

        with pytest.raises(NetworkFailure):
            await client.get_markets()

    @pytest.mark.asyncio
    async def test_order_rejected(self, pem_key):
        """Non-2xx order responses carry the exchange message."""
        client = kalshi_with_responses(
            pem_key,
            FakeResponse(200, {"balance": 100}),
            FakeResponse(400, {"message": "market closed"}),
        )
        await client.connect()
        order = Order("A", "yes", OrderType.MARKET, 1, "cid")

        with pytest.raises(OrderRejected) as exc_info:
            await client.create_order(order)

        assert exc_info.value.message == "market closed"
        assert exc_info.value.status == 400

    @pytest.mark.asyncio
    async def test_requires_connection(self, pem_key):
        client = KalshiClient("key-id", pem_key)

        with pytest.raises(AuthFailure):
            await client.get_balance()


class TestAnthropicClient:
    """Tests for estimator requests."""

    def test_prompt_contents(self):
        quote = MarketQuote("KX-1", "Will it rain in NYC?", 65, 36, 15000)
        prompt = build_prompt(ScoredMarket(quote, 90, 10.0))

        assert "Will it rain in NYC?" in prompt
        assert "YES ask: 65¢" in prompt
        assert "NO ask: 36¢" in prompt
        assert "15,000" in prompt
        assert "10h" in prompt
        for token in ("REC:", "CONFIDENCE:", "EDGE:", "REASON:"):
            assert token in prompt

    @pytest.mark.asyncio
    async def test_joins_text_blocks(self):
        client = AnthropicClient("sk-test")
        client._session = MagicMock()
        client._session.post = MagicMock(return_value=FakeResponse(200, {
            "content": [
                {"type": "server_tool_use", "name": "web_search"},
                {"type": "text", "text": "REC: BUY YES\n"},
                {"type": "text", "text": "CONFIDENCE: 80"},
            ]
        }))

        text = await client.complete("prompt")

        assert text == "REC: BUY YES\nCONFIDENCE: 80"
        payload = client._session.post.call_args.kwargs["json"]
        assert payload["tools"] == [{"type": "web_search_20250305", "name": "web_search"}]
        headers = client._session.post.call_args.kwargs["headers"]
        assert headers["anthropic-version"] == "2023-06-01"

    @pytest.mark.asyncio
    async def test_empty_reply(self):
        client = AnthropicClient("sk-test")
        client._session = MagicMock()
        client._session.post = MagicMock(return_value=FakeResponse(200, {"content": []}))

        with pytest.raises(MalformedEstimate):
            await client.complete("prompt")

    @pytest.mark.asyncio
    async def test_error_status(self):
        client = AnthropicClient("sk-test")
        client._session = MagicMock()
        client._session.post = MagicMock(
            return_value=FakeResponse(529, {"error": {"message": "overloaded"}})
        )

        with pytest.raises(NetworkFailure):
            await client.complete("prompt")

    @pytest.mark.asyncio
    async def test_missing_key(self):
        with pytest.raises(AuthFailure):
            await AnthropicClient("").complete("prompt")
