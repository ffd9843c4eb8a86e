"""Tests for strategy aggregation."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from tipsheet.analysis.aggregator import (
    StrategyAggregator,
    pattern_pool,
    rank_frequencies,
    rank_risk_tiers,
    relevant_patterns,
    usage_guidelines,
)
from tipsheet.analysis.sections import CommonPatterns
from tipsheet.errors import AggregationError
from tipsheet.models.profile import RiskTier

from conftest import FIXED_NOW, make_profile

CD_WIN = "Win bets at Churchill Downs on fast dirt"
SAR_PLACE = "Place bets at Saratoga on turf"


@pytest.fixture
def three_profiles():
    return [
        make_profile("a1", venues=("Churchill Downs", "Saratoga"), categories=("win",), patterns=(CD_WIN,)),
        make_profile("a2", venues=("Churchill Downs",), categories=("win", "place"), patterns=(SAR_PLACE,)),
        make_profile(
            "a3", venues=("Belmont",), categories=("exacta",), risk_tier=RiskTier.AGGRESSIVE,
        ),
    ]


@pytest.fixture
def aggregator():
    return StrategyAggregator(min_bets=50, min_profitability=1.5)


# ── Helpers ────────────────────────────────────────────────


class TestRankFrequencies:
    def test_counts_each_profile_once(self):
        ranked = rank_frequencies([["a", "a", "b"], ["a"]], total=2)
        assert [(f.value, f.count, f.frequency) for f in ranked] == [("a", 2, 1.0), ("b", 1, 0.5)]

    def test_ties_keep_first_seen_order(self):
        ranked = rank_frequencies([["x"], ["y"], ["z"]], total=3)
        assert [f.value for f in ranked] == ["x", "y", "z"]


class TestRankRiskTiers:
    def test_most_common_first(self, three_profiles):
        ranked = rank_risk_tiers(three_profiles)
        assert ranked[0].value == "moderate"
        assert ranked[0].frequency == pytest.approx(2 / 3)

    def test_no_votes_falls_back_to_declaration_order(self):
        ranked = rank_risk_tiers([make_profile("a1", risk_tier=None)])
        assert ranked[0].value == "conservative"
        assert all(f.count == 0 for f in ranked)

    def test_tie_resolves_to_declaration_order(self):
        profiles = [
            make_profile("a1", risk_tier=RiskTier.AGGRESSIVE),
            make_profile("a2", risk_tier=RiskTier.MODERATE),
        ]
        assert rank_risk_tiers(profiles)[0].value == "moderate"


class TestUsageGuidelines:
    """Stake sizing per tier."""

    @pytest.mark.parametrize("tier,stake,min_odds", [
        (RiskTier.CONSERVATIVE, 0.01, 1.5),
        (RiskTier.MODERATE, 0.02, 2.0),
        (RiskTier.AGGRESSIVE, 0.03, 3.0),
    ])
    def test_full_confidence(self, tier, stake, min_odds):
        usage = usage_guidelines(tier, 1.0)
        assert usage.recommended_stake == pytest.approx(stake)
        assert usage.min_odds == min_odds
        assert usage.max_stake == pytest.approx(stake * 2)
        assert usage.stop_loss == pytest.approx(stake * 10)
        assert usage.target_profit == pytest.approx(stake * 20)

    def test_scales_with_confidence(self):
        usage = usage_guidelines(RiskTier.MODERATE, 0.5)
        assert usage.recommended_stake == pytest.approx(0.01)
        assert usage.min_odds == 2.0


class TestPatternPool:
    def test_dedupes_across_profiles(self):
        profiles = [make_profile("a1", patterns=("p1", "p2")), make_profile("a2", patterns=("p2", "p3"))]
        assert pattern_pool(profiles) == ["p1", "p2", "p3"]

    def test_relevant_patterns_case_insensitive(self):
        pool = ["WIN bets at saratoga", "Exotics at Belmont"]
        assert relevant_patterns(pool, "Saratoga", "place") == ["WIN bets at saratoga"]
        assert relevant_patterns(pool, "Keeneland", "win") == ["WIN bets at saratoga"]


# ── StrategyAggregator ─────────────────────────────────────


class TestAggregate:
    """Tests for StrategyAggregator.aggregate."""

    @pytest.mark.asyncio
    async def test_three_profile_scenario(self, aggregator, three_profiles):
        result = await aggregator.aggregate(three_profiles, now=FIXED_NOW)

        assert result.sample_size == 3
        assert result.dominant_risk_tier == RiskTier.MODERATE
        assert [v.value for v in result.venue_preferences] == ["Churchill Downs", "Saratoga", "Belmont"]
        assert [c.value for c in result.category_preferences] == ["win", "place", "exacta"]

        keys = [(s.venue, s.category) for s in result.strategies]
        assert keys[0] == ("Churchill Downs", "win")
        assert ("Belmont", "exacta") not in keys
        assert len(keys) == 8

        top = result.strategies[0]
        assert top.confidence == pytest.approx(2 / 3)
        assert top.patterns == (CD_WIN,)
        assert top.risk_tier == RiskTier.MODERATE
        assert top.last_updated == FIXED_NOW
        assert top.recommended_usage.recommended_stake == pytest.approx(0.02 * 2 / 3)

    @pytest.mark.asyncio
    async def test_shared_venue_ranks_first(self, aggregator):
        profiles = [
            make_profile("a1", venues=("A", "B"), patterns=("win at A",)),
            make_profile("a2", venues=("A", "C"), patterns=("win at C",)),
            make_profile("a3", venues=("A", "D"), risk_tier=RiskTier.AGGRESSIVE),
        ]
        result = await aggregator.aggregate(profiles, now=FIXED_NOW)

        assert result.dominant_risk_tier == RiskTier.MODERATE
        assert result.venue_preferences[0].value == "A"
        assert result.venue_preferences[0].frequency == 1.0

    @pytest.mark.asyncio
    async def test_sorted_by_confidence_with_stable_ties(self, aggregator, three_profiles):
        result = await aggregator.aggregate(three_profiles, now=FIXED_NOW)
        confidences = [s.confidence for s in result.strategies]
        assert confidences == sorted(confidences, reverse=True)

        halves = [(s.venue, s.category) for s in result.strategies if s.confidence == pytest.approx(0.5)]
        assert halves == [
            ("Churchill Downs", "place"),
            ("Churchill Downs", "exacta"),
            ("Saratoga", "win"),
            ("Belmont", "win"),
        ]

    @pytest.mark.asyncio
    async def test_strategy_evidence_mentions_venue_or_category(self, aggregator, three_profiles):
        result = await aggregator.aggregate(three_profiles, now=FIXED_NOW)
        for strategy in result.strategies:
            assert strategy.patterns
            for pattern in strategy.patterns:
                text = pattern.lower()
                assert strategy.venue.lower() in text or strategy.category.lower() in text

    @pytest.mark.asyncio
    async def test_same_input_same_output(self, aggregator, three_profiles):
        first = await aggregator.aggregate(three_profiles, now=FIXED_NOW)
        second = await aggregator.aggregate(three_profiles, now=FIXED_NOW)
        assert first.strategies == second.strategies

    @pytest.mark.asyncio
    async def test_no_valid_profiles_returns_none(self, aggregator):
        weak = [make_profile("a1", profitability=1.2), make_profile("a2", total_bets=10)]
        assert await aggregator.aggregate(weak, now=FIXED_NOW) is None

    @pytest.mark.asyncio
    async def test_invalid_profiles_are_filtered(self, aggregator, three_profiles):
        profiles = three_profiles + [make_profile("weak", venues=("Keeneland",), profitability=1.0)]
        result = await aggregator.aggregate(profiles, now=FIXED_NOW)
        assert result.sample_size == 3
        assert "Keeneland" not in [v.value for v in result.venue_preferences]

    @pytest.mark.asyncio
    async def test_no_patterns_no_strategies(self, aggregator):
        result = await aggregator.aggregate([make_profile("a1", patterns=())], now=FIXED_NOW)
        assert result is not None
        assert result.strategies == []

    @pytest.mark.asyncio
    async def test_common_patterns_only_extend_existing_evidence(self, three_profiles):
        extractor = MagicMock()
        extractor.common_patterns = AsyncMock(return_value=CommonPatterns(
            betting=["Churchill Downs favourites hold up late"],
            selection=["Exacta boxes at Belmont"],
        ))
        aggregator = StrategyAggregator(extractor, min_bets=50, min_profitability=1.5)

        result = await aggregator.aggregate(three_profiles, now=FIXED_NOW)

        keys = [(s.venue, s.category) for s in result.strategies]
        assert ("Belmont", "exacta") not in keys
        assert result.strategies[0].patterns == (CD_WIN, "Churchill Downs favourites hold up late")
        assert result.common_patterns.selection == ["Exacta boxes at Belmont"]

    @pytest.mark.asyncio
    async def test_no_profile_evidence_with_extractor_wired(self, canned_extractor):
        profiles = [
            make_profile("a1", venues=("Saratoga",), categories=("show",), patterns=("nothing relevant",)),
            make_profile("a2", venues=("Saratoga",), categories=("show",), patterns=("still nothing",)),
        ]
        aggregator = StrategyAggregator(canned_extractor, min_bets=50, min_profitability=1.5)

        result = await aggregator.aggregate(profiles, now=FIXED_NOW)

        assert result.strategies == []
        assert result.common_patterns.timing

    @pytest.mark.asyncio
    async def test_common_patterns_failure_raises(self, three_profiles):
        extractor = MagicMock()
        extractor.common_patterns = AsyncMock(side_effect=RuntimeError("model down"))
        aggregator = StrategyAggregator(extractor, min_bets=50, min_profitability=1.5)

        with pytest.raises(AggregationError):
            await aggregator.aggregate(three_profiles, now=FIXED_NOW)

    @pytest.mark.asyncio
    async def test_to_dict(self, aggregator, three_profiles):
        result = await aggregator.aggregate(three_profiles, now=FIXED_NOW)
        data = result.to_dict()
        assert data["sample_size"] == 3
        assert data["risk_profiles"][0] == {"value": "moderate", "count": 2, "frequency": pytest.approx(2 / 3)}
        assert len(data["strategies"]) == 8
