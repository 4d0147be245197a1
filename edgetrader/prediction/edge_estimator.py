"""
Edge Estimator

Turns a free-text market analysis into a structured recommendation.

Explicit `REC:` / `CONFIDENCE:` / `EDGE:` / `REASON:` lines are read first.
Keyword heuristics only fill in fields those lines did not supply. Parsing
never raises: unusable text yields a recommendation with no side.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..utils.logger import get_logger

logger = get_logger("edge_estimator")

DEFAULT_CONFIDENCE = 0.58
DEFAULT_EDGE = 0
MAX_CONFIDENCE = 0.99
REASON_LENGTH = 90
NO_REASON = "No reason provided"

_LINE_START = r"^[ \t*#>-]*"
_REC_LINE = re.compile(
    _LINE_START + r"(?:REC|RECOMMENDATION)\s*:[ \t*]*(?:BUY\s+)?(YES|NO|SKIP)\b",
    re.IGNORECASE | re.MULTILINE,
)
_CONFIDENCE_LINE = re.compile(
    _LINE_START + r"CONFIDENCE\s*:[ \t*]*(\d+)", re.IGNORECASE | re.MULTILINE
)
_CONFIDENCE_LOOSE = re.compile(r"confidence[:\s]+(\d+)", re.IGNORECASE)
_EDGE_LINE = re.compile(_LINE_START + r"EDGE\s*:[ \t*]*\+?(\d+)", re.IGNORECASE | re.MULTILINE)
_EDGE_LOOSE = [
    re.compile(r"edge[:\s]+\+?(\d+)", re.IGNORECASE),
    re.compile(r"mispriced.*?(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)[¢c]\s*(?:edge|mispriced)", re.IGNORECASE),
]
_REASON_LINE = re.compile(r"REASON:\s*(.+)", re.IGNORECASE)

# First match wins
_CONFIDENCE_KEYWORDS = [
    (("very high",), 0.90),
    (("high confidence", "confidence: high"), 0.82),
    (("medium-high",), 0.70),
    (("medium",), 0.62),
]
_EDGE_KEYWORDS = [
    (("strong edge", "large edge"), 14),
    (("clear edge", "good edge"), 9),
    (("slight edge",), 5),
]


class ParseKind(Enum):
    """How the side of a recommendation was found."""
    STRUCTURED = "structured"  # explicit REC line
    HEURISTIC = "heuristic"  # "buy yes" / "buy no" anywhere in the text
    NONE = "none"  # no actionable side


class StrategyTag(str, Enum):
    FAVORITE_BIAS = "favorite_bias"
    DAILY_MARKET = "daily_market"
    CHEAP_NO = "cheap_no"
    AI_ANALYSIS = "ai_analysis"


@dataclass(frozen=True)
class Recommendation:
    """Structured result of one analysis."""
    side: Optional[str]  # "yes", "no" or None
    confidence: float
    edge_cents: int
    strategy_tag: StrategyTag
    reason: str
    kind: ParseKind

    @property
    def actionable(self) -> bool:
        return self.side is not None


def _parse_side(text: str, lowered: str) -> tuple[Optional[str], ParseKind]:
    match = _REC_LINE.search(text)
    if match:
        choice = match.group(1).lower()
        if choice == "skip":
            return None, ParseKind.NONE
        return choice, ParseKind.STRUCTURED

    if "buy yes" in lowered:
        return "yes", ParseKind.HEURISTIC
    if "buy no" in lowered:
        return "no", ParseKind.HEURISTIC
    return None, ParseKind.NONE


def _parse_confidence(text: str, lowered: str) -> float:
    match = _CONFIDENCE_LINE.search(text) or _CONFIDENCE_LOOSE.search(text)
    if match:
        return min(MAX_CONFIDENCE, int(match.group(1)) / 100)

    for phrases, value in _CONFIDENCE_KEYWORDS:
        if any(p in lowered for p in phrases):
            return value
    return DEFAULT_CONFIDENCE


def _parse_edge(text: str, lowered: str) -> int:
    match = _EDGE_LINE.search(text)
    if not match:
        for pattern in _EDGE_LOOSE:
            match = pattern.search(text)
            if match:
                break
    if match:
        return int(match.group(1))

    for phrases, value in _EDGE_KEYWORDS:
        if any(p in lowered for p in phrases):
            return value
    return DEFAULT_EDGE


def _strategy_tag(lowered: str, side: Optional[str], confidence: float) -> StrategyTag:
    tag = StrategyTag.AI_ANALYSIS
    if "favorite" in lowered or "heavily favored" in lowered:
        tag = StrategyTag.FAVORITE_BIAS
    if "daily" in lowered or "resolves today" in lowered:
        tag = StrategyTag.DAILY_MARKET
    if side == "no" and confidence > 0.68:
        tag = StrategyTag.CHEAP_NO
    return tag


def extract_reason(text: str) -> str:
    """First `REASON:` line, cut to display length."""
    match = _REASON_LINE.search(text or "")
    if match:
        reason = match.group(1).strip()[:REASON_LENGTH]
        if reason:
            return reason
    return NO_REASON


def parse_recommendation(text: Optional[str]) -> Recommendation:
    """
    Parse an analysis into a Recommendation.

    Args:
        text: Raw estimator output; may be empty or None

    Returns:
        Recommendation; `side` is None when nothing actionable was found
    """
    text = text or ""
    lowered = text.lower()

    side, kind = _parse_side(text, lowered)
    confidence = _parse_confidence(text, lowered)
    edge = _parse_edge(text, lowered)

    recommendation = Recommendation(
        side=side,
        confidence=confidence,
        edge_cents=edge,
        strategy_tag=_strategy_tag(lowered, side, confidence),
        reason=extract_reason(text),
        kind=kind,
    )
    logger.debug(
        f"Parsed recommendation: side={side} conf={confidence:.2f} "
        f"edge={edge} kind={kind.value}"
    )
    return recommendation
