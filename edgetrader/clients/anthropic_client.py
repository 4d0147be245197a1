"""
Anthropic Messages API client.
Asks the model for a probability estimate on one shortlisted market.
"""

import asyncio
from typing import Optional

import aiohttp

from ..errors import AuthFailure, MalformedEstimate, NetworkFailure
from ..models import ScoredMarket
from ..utils.logger import get_logger

logger = get_logger("anthropic")

API_VERSION = "2023-06-01"
WEB_SEARCH_TOOL = {"type": "web_search_20250305", "name": "web_search"}


def build_prompt(market: ScoredMarket) -> str:
    """Prompt for one market, including the reply grammar the parser expects."""
    quote = market.quote
    return (
        "You are a prediction market analyst. Search for the latest news on "
        "this market, then decide whether either side is mispriced.\n\n"
        f"Market: {quote.title}\n"
        f"Ticker: {quote.ticker}\n"
        f"YES ask: {quote.yes_ask}¢\n"
        f"NO ask: {quote.no_ask}¢\n"
        f"Volume: {quote.volume:,}\n"
        f"Time remaining: {market.time_label}\n\n"
        "Reply in exactly this format:\n"
        "REC: BUY YES | BUY NO | SKIP\n"
        "CONFIDENCE: <0-100>\n"
        "EDGE: <cents of mispricing>\n"
        "REASON: <one sentence>\n\n"
        "Only recommend if 6+ cents genuine edge. Otherwise SKIP."
    )


class AnthropicClient:
    """
    Async client for the Messages endpoint.

    Returns the model's raw text; parsing happens in the edge estimator.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 500,
        web_search: bool = True,
        base_url: str = "https://api.anthropic.com",
        timeout_seconds: float = 60.0
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.web_search = web_search
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: Optional[aiohttp.ClientSession] = None

    async def initialize(self) -> None:
        """Initialize HTTP session."""
        if not self._session:
            self._session = aiohttp.ClientSession(timeout=self.timeout)

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    def _payload(self, prompt: str) -> dict:
        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if self.web_search:
            payload["tools"] = [WEB_SEARCH_TOOL]
        return payload

    async def complete(self, prompt: str) -> str:
        """
        Send one prompt and join the text blocks of the reply.

        Raises:
            AuthFailure: API key missing or rejected
            NetworkFailure: request failed or returned an error status
            MalformedEstimate: reply carried no text
        """
        if not self.api_key:
            raise AuthFailure("Anthropic API key is not configured")
        if not self._session:
            await self.initialize()

        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": API_VERSION,
            "content-type": "application/json",
        }

        try:
            async with self._session.post(
                f"{self.base_url}/v1/messages",
                json=self._payload(prompt),
                headers=headers,
            ) as response:
                status = response.status
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Estimator request failed: {e}")
            raise NetworkFailure(f"Estimator request failed: {e}") from e

        if status in (401, 403):
            raise AuthFailure("Anthropic API key rejected", details={"status": status})
        if status >= 400:
            message = ((data or {}).get("error") or {}).get("message", f"HTTP {status}")
            raise NetworkFailure(f"Estimator error: {message}", details={"status": status})

        text = "".join(
            block.get("text", "")
            for block in (data or {}).get("content") or []
            if block.get("type") == "text"
        ).strip()

        if not text:
            raise MalformedEstimate("Estimator reply contained no text")
        return text

    async def estimate(self, market: ScoredMarket) -> str:
        """Raw estimator text for a shortlisted market."""
        logger.debug(f"Requesting estimate for {market.ticker}")
        return await self.complete(build_prompt(market))
