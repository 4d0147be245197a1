"""
Tests for recommendation parsing.
"""

import pytest

from edgetrader.prediction import ParseKind, StrategyTag, extract_reason, parse_recommendation


class TestStructuredParse:
    """Tests for explicit REC / CONFIDENCE / EDGE lines."""

    def test_full_grammar(self):
        """All four lines parse into a structured recommendation."""
        rec = parse_recommendation("REC: BUY YES\nCONFIDENCE: 80\nEDGE: 9\nREASON: test")

        assert rec.side == "yes"
        assert rec.confidence == pytest.approx(0.80)
        assert rec.edge_cents == 9
        assert rec.reason == "test"
        assert rec.kind == ParseKind.STRUCTURED

    def test_buy_no(self):
        rec = parse_recommendation("REC: BUY NO\nCONFIDENCE: 60\nEDGE: 7")

        assert rec.side == "no"
        assert rec.kind == ParseKind.STRUCTURED

    def test_skip_has_no_side(self):
        """SKIP is not actionable even if the prose mentions buying."""
        rec = parse_recommendation("REC: SKIP\nCONFIDENCE: 55\nEDGE: 2\nREASON: I would not buy yes here")

        assert rec.side is None
        assert not rec.actionable
        assert rec.kind == ParseKind.NONE

    def test_confidence_capped(self):
        """Confidence never exceeds 0.99."""
        rec = parse_recommendation("REC: BUY YES\nCONFIDENCE: 100\nEDGE: 12")

        assert rec.confidence == pytest.approx(0.99)

    def test_edge_with_plus_sign(self):
        rec = parse_recommendation("REC: BUY YES\nEDGE: +11")

        assert rec.edge_cents == 11

    def test_lines_beat_earlier_prose(self):
        """Numbers mentioned in prose before the grammar lines are ignored."""
        rec = parse_recommendation(
            "Strong edge: 3 reasons below. My confidence: 40 at first.\n"
            "REC: BUY YES\nCONFIDENCE: 80\nEDGE: 9\nREASON: x"
        )

        assert rec.edge_cents == 9
        assert rec.confidence == pytest.approx(0.80)
        assert rec.kind == ParseKind.STRUCTURED

    def test_markdown_bullets(self):
        rec = parse_recommendation("Analysis done.\n**REC:** BUY NO\n- CONFIDENCE: 72\n- EDGE: 8")

        assert rec.side == "no"
        assert rec.confidence == pytest.approx(0.72)
        assert rec.edge_cents == 8
        assert rec.kind == ParseKind.STRUCTURED

    def test_inline_edge_used_without_line(self):
        """Without an EDGE line the prose number is still read."""
        rec = parse_recommendation("REC: BUY YES\nI see an edge: 7 cents here.")

        assert rec.edge_cents == 7


class TestHeuristicParse:
    """Tests for keyword fallbacks."""

    def test_buy_keyword(self):
        """A side named in prose is a heuristic recommendation."""
        rec = parse_recommendation("I would buy no at these prices.")

        assert rec.side == "no"
        assert rec.kind == ParseKind.HEURISTIC

    def test_confidence_keywords(self):
        assert parse_recommendation("buy yes, very high conviction").confidence == 0.90
        assert parse_recommendation("buy yes with high confidence").confidence == 0.82
        assert parse_recommendation("buy yes, medium-high").confidence == 0.70
        assert parse_recommendation("buy yes, medium").confidence == 0.62

    def test_edge_keywords(self):
        assert parse_recommendation("buy yes, strong edge").edge_cents == 14
        assert parse_recommendation("buy yes, clear edge").edge_cents == 9
        assert parse_recommendation("buy yes, slight edge").edge_cents == 5

    def test_mispriced_number(self):
        """A number after 'mispriced' is read as the edge."""
        assert parse_recommendation("YES looks mispriced by 8 cents").edge_cents == 8

    def test_defaults(self):
        """Nothing recognisable falls back to conservative defaults."""
        rec = parse_recommendation("The outlook is uncertain.")

        assert rec.side is None
        assert rec.confidence == 0.58
        assert rec.edge_cents == 0
        assert rec.kind == ParseKind.NONE

    @pytest.mark.parametrize("text", ["", None, "REC:", "CONFIDENCE: abc", "\x00\x01"])
    def test_never_raises(self, text):
        """Malformed input yields a non-actionable result."""
        rec = parse_recommendation(text)

        assert rec.side is None
        assert rec.reason == "No reason provided"


class TestStrategyTag:
    """Tests for strategy tagging."""

    def test_favorite(self):
        rec = parse_recommendation("REC: BUY YES\nCONFIDENCE: 70\nEDGE: 8\nREASON: heavy favorite underpriced")

        assert rec.strategy_tag == StrategyTag.FAVORITE_BIAS

    def test_daily_overrides_favorite(self):
        rec = parse_recommendation("REC: BUY YES\nCONFIDENCE: 70\nEDGE: 8\nREASON: favorite, resolves today")

        assert rec.strategy_tag == StrategyTag.DAILY_MARKET

    def test_cheap_no_overrides(self):
        """Confident NO bets are tagged cheap_no."""
        rec = parse_recommendation("REC: BUY NO\nCONFIDENCE: 75\nEDGE: 10\nREASON: daily market overpriced")

        assert rec.strategy_tag == StrategyTag.CHEAP_NO

    def test_default_tag(self):
        rec = parse_recommendation("REC: BUY NO\nCONFIDENCE: 60\nEDGE: 10")

        assert rec.strategy_tag == StrategyTag.AI_ANALYSIS


class TestReason:
    """Tests for reason extraction."""

    def test_truncated(self):
        text = "REASON: " + "x" * 200

        assert len(extract_reason(text)) == 90

    def test_missing(self):
        assert extract_reason("REC: SKIP") == "No reason provided"
