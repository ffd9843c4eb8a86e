"""Merge many actor profiles into consensus strategies.

Candidates are the cross product of the three most popular venues and the
three most popular categories. A candidate only becomes a strategy when
at least one profile pattern mentions its venue or its category. Shared
patterns from the cross-profile analysis are appended as extra evidence
but never keep a candidate alive on their own. Confidence is the
mean of the venue's and the category's popularity.

All rankings use stable sorts, so equal frequencies keep first-seen order
(risk tiers keep declaration order) and the output is reproducible for a
fixed clock and input.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from tipsheet.analysis.extractor import PatternExtractor
from tipsheet.analysis.sections import CommonPatterns
from tipsheet.config import settings, utc_now
from tipsheet.errors import AggregationError
from tipsheet.models.profile import ActorProfile, RiskTier
from tipsheet.models.strategy import RecommendedUsage, Strategy

logger = logging.getLogger(__name__)

TOP_VENUES = 3
TOP_CATEGORIES = 3

BASE_STAKE = {
    RiskTier.CONSERVATIVE: 0.01,
    RiskTier.MODERATE: 0.02,
    RiskTier.AGGRESSIVE: 0.03,
}
MIN_ODDS = {
    RiskTier.CONSERVATIVE: 1.5,
    RiskTier.MODERATE: 2.0,
    RiskTier.AGGRESSIVE: 3.0,
}


@dataclass(frozen=True)
class Frequency:
    """Share of profiles that carry a value."""

    value: str
    count: int
    frequency: float


@dataclass
class AggregationResult:
    """Everything one aggregation pass produced."""

    timestamp: datetime
    sample_size: int
    average_profitability: float
    risk_profiles: list[Frequency]
    venue_preferences: list[Frequency]
    category_preferences: list[Frequency]
    strategies: list[Strategy]
    common_patterns: CommonPatterns = field(default_factory=CommonPatterns)

    @property
    def dominant_risk_tier(self) -> RiskTier:
        return RiskTier(self.risk_profiles[0].value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "sample_size": self.sample_size,
            "average_profitability": round(self.average_profitability, 4),
            "risk_profiles": [asdict(f) for f in self.risk_profiles],
            "venue_preferences": [asdict(f) for f in self.venue_preferences],
            "category_preferences": [asdict(f) for f in self.category_preferences],
            "common_patterns": self.common_patterns.model_dump(),
            "strategies": [s.to_dict() for s in self.strategies],
        }


def rank_frequencies(values_per_profile: Iterable[Iterable[str]], total: int) -> list[Frequency]:
    """Count how many profiles carry each value; most common first, ties first-seen."""
    counts: dict[str, int] = {}
    for values in values_per_profile:
        for value in dict.fromkeys(values):
            counts[value] = counts.get(value, 0) + 1
    ranked = [Frequency(v, c, c / total) for v, c in counts.items()]
    return sorted(ranked, key=lambda f: f.frequency, reverse=True)


def rank_risk_tiers(profiles: Sequence[ActorProfile]) -> list[Frequency]:
    """Frequency of each risk tier; ties resolve to declaration order."""
    total = len(profiles)
    ranked = []
    for tier in RiskTier:
        count = sum(1 for p in profiles if p.risk_tier == tier)
        ranked.append(Frequency(tier.value, count, count / total))
    return sorted(ranked, key=lambda f: f.frequency, reverse=True)


def usage_guidelines(risk_tier: RiskTier, confidence: float) -> RecommendedUsage:
    """Stake sizing for a tier, scaled by confidence."""
    stake = BASE_STAKE[risk_tier] * confidence
    return RecommendedUsage(
        recommended_stake=stake,
        min_odds=MIN_ODDS[risk_tier],
        max_stake=stake * 2,
        stop_loss=stake * 10,
        target_profit=stake * 20,
    )


def pattern_pool(profiles: Sequence[ActorProfile]) -> list[str]:
    """Union of every profile's patterns, first-seen order."""
    pool: dict[str, None] = {}
    for profile in profiles:
        for pattern in profile.patterns:
            pool.setdefault(pattern, None)
    return list(pool)


def relevant_patterns(pool: Sequence[str], venue: str, category: str) -> list[str]:
    venue_lower = venue.lower()
    category_lower = category.lower()
    return [
        p for p in pool
        if venue_lower in p.lower() or category_lower in p.lower()
    ]


class StrategyAggregator:
    """Builds the consensus strategy list for one cycle.

    Args:
        extractor: Optional cross-profile collaborator. When set, its common
            patterns are appended to strategies that already have profile
            evidence, and a failure of that call raises ``AggregationError``.
    """

    def __init__(
        self,
        extractor: Optional[PatternExtractor] = None,
        min_bets: Optional[int] = None,
        min_profitability: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        self.extractor = extractor
        self.min_bets = settings.min_bets_for_analysis if min_bets is None else min_bets
        self.min_profitability = (
            settings.profitable_threshold if min_profitability is None else min_profitability
        )
        self.timeout = settings.collaborator_timeout if timeout is None else timeout

    def filter_valid_profiles(self, profiles: Sequence[ActorProfile]) -> list[ActorProfile]:
        return [p for p in profiles if p.is_valid(self.min_bets, self.min_profitability)]

    async def aggregate(
        self,
        profiles: Sequence[ActorProfile],
        now: Optional[datetime] = None,
    ) -> Optional[AggregationResult]:
        """Aggregate profiles. Returns None when no profile is valid.

        Raises:
            AggregationError: The cross-profile collaborator failed.
        """
        valid = self.filter_valid_profiles(profiles)
        if not valid:
            logger.info("No valid profiles to aggregate")
            return None

        now = now or utc_now()
        common = await self._common_patterns(valid)
        total = len(valid)

        risk_profiles = rank_risk_tiers(valid)
        venues = rank_frequencies((p.preferred_venues for p in valid), total)
        categories = rank_frequencies((p.preferred_categories for p in valid), total)

        strategies = self.generate_strategies(
            pattern_pool(valid),
            RiskTier(risk_profiles[0].value),
            venues,
            categories,
            now,
            shared=common.evidence_pool() if common is not None else (),
        )

        logger.info(
            f"Aggregated {total} profiles into {len(strategies)} strategies "
            f"(dominant risk: {risk_profiles[0].value})"
        )
        return AggregationResult(
            timestamp=now,
            sample_size=total,
            average_profitability=sum(p.profitability for p in valid) / total,
            risk_profiles=risk_profiles,
            venue_preferences=venues,
            category_preferences=categories,
            strategies=strategies,
            common_patterns=common or CommonPatterns(),
        )

    def generate_strategies(
        self,
        pool: Sequence[str],
        dominant_risk: RiskTier,
        venues: Sequence[Frequency],
        categories: Sequence[Frequency],
        now: datetime,
        shared: Sequence[str] = (),
    ) -> list[Strategy]:
        strategies = []
        for venue in venues[:TOP_VENUES]:
            for category in categories[:TOP_CATEGORIES]:
                evidence = relevant_patterns(pool, venue.value, category.value)
                if not evidence:
                    continue
                for pattern in relevant_patterns(shared, venue.value, category.value):
                    if pattern not in evidence:
                        evidence.append(pattern)
                confidence = (venue.frequency + category.frequency) / 2
                strategies.append(Strategy(
                    venue=venue.value,
                    category=category.value,
                    risk_tier=dominant_risk,
                    confidence=confidence,
                    patterns=tuple(evidence),
                    recommended_usage=usage_guidelines(dominant_risk, confidence),
                    last_updated=now,
                ))
        return sorted(strategies, key=lambda s: s.confidence, reverse=True)

    async def _common_patterns(self, profiles: Sequence[ActorProfile]) -> Optional[CommonPatterns]:
        if self.extractor is None:
            return None
        try:
            return await asyncio.wait_for(
                self.extractor.common_patterns(profiles), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise AggregationError(f"Cross-profile analysis timed out after {self.timeout}s") from e
        except Exception as e:
            raise AggregationError(f"Cross-profile analysis failed: {e}") from e
