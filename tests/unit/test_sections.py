"""Tests for LLM response parsing."""

from tipsheet.ai.mock_client import CANNED_ACTOR_ANALYSIS, CANNED_AGGREGATE_ANALYSIS
from tipsheet.analysis.sections import (
    ACTOR_HEADERS,
    CommonPatterns,
    PatternAnalysis,
    extract_json_block,
    parse_actor_analysis,
    parse_common_patterns,
    parse_sections,
)


class TestExtractJsonBlock:
    """Tests for finding structured JSON in a response."""

    def test_fenced_block(self):
        text = 'Here you go:\n```json\n{"risk_tier": "moderate"}\n```\nThanks'
        assert extract_json_block(text) == {"risk_tier": "moderate"}

    def test_unclosed_fence(self):
        text = '```json\n{"patterns": ["a"]}'
        assert extract_json_block(text) == {"patterns": ["a"]}

    def test_raw_object(self):
        assert extract_json_block('  {"betting": []}  ') == {"betting": []}

    def test_invalid_json_returns_none(self):
        assert extract_json_block("```json\n{not json}\n```") is None

    def test_list_is_not_an_object(self):
        assert extract_json_block("```json\n[1, 2]\n```") is None

    def test_plain_text_returns_none(self):
        assert extract_json_block("Betting Patterns:\n\nNothing") is None


class TestParseSections:
    """Tests for the header-sectioned fallback format."""

    def test_header_switches_section(self):
        text = "Betting Patterns:\n\nBacks leaders.\n\nPreferred Tracks:\n\nSaratoga"
        result = parse_sections(text, ACTOR_HEADERS)
        assert result["patterns"] == ["Backs leaders."]
        assert result["preferred_venues"] == ["Saratoga"]

    def test_missing_headers_stay_empty(self):
        result = parse_sections("Betting Patterns:\n\nBacks leaders.", ACTOR_HEADERS)
        assert result["success_factors"] == []
        assert result["recommended_strategies"] == []

    def test_text_after_label_in_same_block(self):
        result = parse_sections("Risk Profile: Aggressive", ACTOR_HEADERS)
        assert result["risk_tier"] == ["Aggressive"]

    def test_bullet_block_splits_into_items(self):
        text = "Preferred Tracks:\n\n- Churchill Downs\n- Saratoga\n* Belmont"
        result = parse_sections(text, ACTOR_HEADERS)
        assert result["preferred_venues"] == ["Churchill Downs", "Saratoga", "Belmont"]

    def test_numbered_block_splits_into_items(self):
        text = "Success Factors:\n\n1. Discipline\n2) Patience"
        result = parse_sections(text, ACTOR_HEADERS)
        assert result["success_factors"] == ["Discipline", "Patience"]

    def test_paragraph_stays_whole(self):
        text = "Betting Patterns:\n\nBacks leaders\non fast dirt."
        result = parse_sections(text, ACTOR_HEADERS)
        assert result["patterns"] == ["Backs leaders\non fast dirt."]

    def test_unknown_header_content_ignored(self):
        text = "Betting Patterns:\n\nBacks leaders.\n\nNotes:\n\nIgnore me."
        result = parse_sections(text, ACTOR_HEADERS)
        assert result["patterns"] == ["Backs leaders."]

    def test_text_before_first_header_ignored(self):
        text = "Here is my analysis.\n\nBetting Patterns:\n\nBacks leaders."
        result = parse_sections(text, ACTOR_HEADERS)
        assert result["patterns"] == ["Backs leaders."]

    def test_empty_response(self):
        result = parse_sections("", ACTOR_HEADERS)
        assert all(items == [] for items in result.values())


class TestParseActorAnalysis:
    """Tests for parsing a single actor's analysis."""

    def test_json_response(self):
        text = """```json
{
  "patterns": ["Win bets at Saratoga on turf"],
  "preferred_venues": ["Saratoga"],
  "preferred_categories": ["win"],
  "risk_tier": "aggressive",
  "success_factors": "Patience",
  "recommended_strategies": null
}
```"""
        analysis = parse_actor_analysis(text)
        assert analysis.preferred_venues == ["Saratoga"]
        assert analysis.risk_tier == "aggressive"
        assert analysis.success_factors == ["Patience"]
        assert analysis.recommended_strategies == []

    def test_sectioned_response(self):
        analysis = parse_actor_analysis(CANNED_ACTOR_ANALYSIS)
        assert analysis.preferred_venues == ["Churchill Downs", "Saratoga"]
        assert analysis.preferred_categories == ["win", "place"]
        assert analysis.risk_tier == "Moderate"
        assert len(analysis.patterns) == 2

    def test_garbage_yields_defaults(self):
        analysis = parse_actor_analysis("I cannot help with that.")
        assert analysis == PatternAnalysis()


class TestParseCommonPatterns:
    """Tests for parsing cross-profile analysis."""

    def test_sectioned_response(self):
        common = parse_common_patterns(CANNED_AGGREGATE_ANALYSIS)
        assert len(common.betting) == 1
        assert len(common.management) == 1

    def test_evidence_pool_excludes_management(self):
        common = CommonPatterns(
            betting=["b"], timing=["t"], selection=["s"], management=["m"]
        )
        assert common.evidence_pool() == ["b", "t", "s"]

    def test_json_response(self):
        common = parse_common_patterns('{"betting": "Back leaders", "timing": []}')
        assert common.betting == ["Back leaders"]
        assert common.selection == []
