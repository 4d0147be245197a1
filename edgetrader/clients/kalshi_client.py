"""
Kalshi trading API client.
Every request is signed with the account's RSA key.
"""

import asyncio
from typing import Any, Optional
from urllib.parse import urlsplit

import aiohttp

from ..errors import AuthFailure, NetworkFailure, OrderRejected
from ..models import MarketQuote, Order
from ..utils.logger import get_logger
from .signing import RequestSigner

logger = get_logger("kalshi")


class KalshiClient:
    """
    Async client for the Kalshi REST API.

    Handles balance, open market listing and order submission.
    """

    DEFAULT_BASE_URL = "https://trading-api.kalshi.com/trade-api/v2"

    def __init__(
        self,
        key_id: str,
        private_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 10.0
    ):
        """
        Initialize Kalshi client.

        Args:
            key_id: API key id
            private_key: RSA private key text (PEM or bare base64 body)
            base_url: API root including the version prefix
            timeout_seconds: Total timeout per request
        """
        self.key_id = key_id
        self.private_key = private_key
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

        self._signer: Optional[RequestSigner] = None
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def connected(self) -> bool:
        return self._signer is not None

    async def connect(self) -> float:
        """
        Load credentials and verify them against the balance endpoint.

        Returns:
            Account balance in dollars

        Raises:
            AuthFailure: key could not be loaded or was rejected; credentials
                are cleared so nothing is signed with them afterwards
        """
        if not self.key_id:
            raise AuthFailure("Enter your API Key ID")
        if not self.private_key or not self.private_key.strip():
            raise AuthFailure("Paste your Private Key")

        try:
            self._signer = RequestSigner.from_pem(self.key_id.strip(), self.private_key)
            balance = await self.get_balance()
        except (AuthFailure, NetworkFailure) as e:
            self._clear_credentials()
            logger.error(f"Connection failed: {e}")
            if isinstance(e, AuthFailure):
                raise
            raise AuthFailure(f"Connection failed: {e.message}") from e

        logger.info("Connected to Kalshi", extra={"balance": balance})
        return balance

    def _clear_credentials(self) -> None:
        self._signer = None
        self.key_id = ""
        self.private_key = ""

    async def initialize(self) -> None:
        """Initialize HTTP session."""
        if not self._session:
            self._session = aiohttp.ClientSession(timeout=self.timeout)

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    def _sign_path(self, endpoint: str) -> str:
        """Full request path as it appears on the wire, without query."""
        return urlsplit(self.base_url).path + endpoint.split("?")[0]

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        body: Optional[dict] = None
    ) -> tuple[int, Any]:
        """Make a signed request; returns (status, decoded body)."""
        if not self._signer:
            raise AuthFailure("Not connected")
        if not self._session:
            await self.initialize()

        headers = {"Content-Type": "application/json"}
        headers.update(self._signer.headers(method, self._sign_path(endpoint)))
        url = f"{self.base_url}{endpoint}"

        try:
            async with self._session.request(
                method, url, params=params, json=body, headers=headers
            ) as response:
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    data = {}
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Kalshi request failed: {method} {endpoint}: {e}")
            raise NetworkFailure(f"{method} {endpoint} failed: {e}") from e

        if status in (401, 403):
            raise AuthFailure(_error_message(data, "Auth failed"), details={"status": status})
        return status, data

    async def get_balance(self) -> float:
        """Account balance in dollars."""
        status, data = await self._request("GET", "/portfolio/balance")
        if status >= 400 or "balance" not in (data or {}):
            raise NetworkFailure(
                _error_message(data, f"Balance request failed ({status})"),
                details={"status": status},
            )
        return data["balance"] / 100

    async def get_markets(self, limit: int = 50, status: str = "open") -> list[MarketQuote]:
        """Open markets as quotes."""
        code, data = await self._request(
            "GET", "/markets", params={"limit": str(limit), "status": status}
        )
        if code >= 400:
            raise NetworkFailure(
                _error_message(data, f"Markets request failed ({code})"),
                details={"status": code},
            )
        try:
            return [MarketQuote.from_api(m) for m in (data or {}).get("markets") or []]
        except (AttributeError, TypeError, ValueError) as e:
            raise NetworkFailure(f"Malformed markets response: {e}") from e

    async def create_order(self, order: Order) -> dict:
        """
        Submit an order.

        Returns:
            Exchange response body

        Raises:
            OrderRejected: exchange answered with an error status
            NetworkFailure: request did not complete
        """
        status, data = await self._request("POST", "/portfolio/orders", body=order.to_payload())
        if status >= 400:
            raise OrderRejected(_error_message(data, "Unknown"), status=status)
        return data or {}


def _error_message(data: Any, default: str) -> str:
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if data.get("message"):
            return str(data["message"])
    return default
