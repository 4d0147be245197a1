"""
Market Scanner

Ranks open prediction markets by time to close, quoted price band and
liquidity, and keeps a short list for estimation.

Scoring:
    +40  closes within 24h (else +20 within 72h)
    +30  YES ask in [60, 88]
    +25  NO ask in [8, 20]
    +20  volume above 10,000 (else +10 above 1,000)
    -50  YES ask below 5 or above 95
"""
from datetime import datetime
from typing import Iterable, Optional

from ..config import ScannerConfig
from ..models import MarketQuote, ScoredMarket
from ..utils.logger import get_logger

logger = get_logger("scanner")


def score_market(quote: MarketQuote, now: Optional[datetime] = None) -> ScoredMarket:
    """Attach a ranking score to one quote."""
    hours_left = quote.hours_left(now)
    score = 0

    if hours_left < 24:
        score += 40
    elif hours_left < 72:
        score += 20

    if 60 <= quote.yes_ask <= 88:
        score += 30
    if 8 <= quote.no_ask <= 20:
        score += 25

    if quote.volume > 10000:
        score += 20
    elif quote.volume > 1000:
        score += 10

    if quote.yes_ask < 5 or quote.yes_ask > 95:
        score -= 50

    return ScoredMarket(quote=quote, score=score, hours_left=hours_left)


class MarketScanner:
    """
    Selects the markets worth an estimate.

    Usage:
        scanner = MarketScanner(ScannerConfig())
        shortlist = scanner.rank(quotes)
    """

    def __init__(self, config: Optional[ScannerConfig] = None):
        self.config = config or ScannerConfig()

    def rank(
        self,
        quotes: Iterable[MarketQuote],
        now: Optional[datetime] = None
    ) -> list[ScoredMarket]:
        """
        Score, filter and order quotes.

        Returns:
            At most `shortlist_size` markets scoring above `min_score`,
            best first; ties keep their input order
        """
        scored = [score_market(q, now) for q in quotes]
        eligible = [m for m in scored if m.score > self.config.min_score]
        # sorted() is stable, so equal scores keep exchange order
        eligible = sorted(eligible, key=lambda m: m.score, reverse=True)
        shortlist = eligible[:self.config.shortlist_size]

        logger.debug(
            f"Ranked {len(scored)} markets: {len(eligible)} eligible, "
            f"{len(shortlist)} shortlisted"
        )
        return shortlist
