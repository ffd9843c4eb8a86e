"""Strategy and recommendation models.

A ``Strategy`` is what the aggregator produces and the store persists.
A ``Recommendation`` is what readers get back: a copy of a strategy whose
confidence may have been decayed or context-adjusted. Both are frozen, so
a read can never write through to the stored snapshot.

Confidence is an unbounded score, not a probability. Frequency averaging
keeps aggregated values within [0, 1], but context adjustment can push a
recommendation above 1.0 and nothing clamps it.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Optional

from tipsheet.models.profile import RiskTier

StrategyKey = tuple[str, str, RiskTier]


@dataclass(frozen=True)
class RecommendedUsage:
    """Bankroll sizing guidance derived from risk tier and confidence."""

    recommended_stake: float
    min_odds: float
    max_stake: float
    stop_loss: float
    target_profit: float

    def to_dict(self) -> dict[str, float]:
        return {
            "recommended_stake": self.recommended_stake,
            "min_odds": self.min_odds,
            "max_stake": self.max_stake,
            "stop_loss": self.stop_loss,
            "target_profit": self.target_profit,
        }


@dataclass(frozen=True)
class AdjustedFor:
    """Live conditions a recommendation was re-scored against."""

    weather: Optional[str] = None
    condition: Optional[str] = None
    surface: Optional[str] = None


@dataclass(frozen=True)
class Strategy:
    """Consensus strategy for one (venue, category, risk tier) key."""

    venue: str
    category: str
    risk_tier: RiskTier
    confidence: float
    patterns: tuple[str, ...]
    recommended_usage: RecommendedUsage
    last_updated: Optional[datetime] = None

    @property
    def key(self) -> StrategyKey:
        return (self.venue, self.category, self.risk_tier)

    def to_dict(self) -> dict[str, Any]:
        return {
            "venue": self.venue,
            "category": self.category,
            "risk_tier": self.risk_tier.value,
            "confidence": self.confidence,
            "patterns": list(self.patterns),
            "recommended_usage": self.recommended_usage.to_dict(),
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }


@dataclass(frozen=True)
class Recommendation(Strategy):
    """Read-time projection of a stored strategy."""

    adjusted_for: Optional[AdjustedFor] = field(default=None)

    @classmethod
    def from_strategy(cls, strategy: Strategy, **changes: Any) -> "Recommendation":
        base = cls(
            venue=strategy.venue,
            category=strategy.category,
            risk_tier=strategy.risk_tier,
            confidence=strategy.confidence,
            patterns=strategy.patterns,
            recommended_usage=strategy.recommended_usage,
            last_updated=strategy.last_updated,
            adjusted_for=getattr(strategy, "adjusted_for", None),
        )
        return replace(base, **changes) if changes else base

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.adjusted_for is not None:
            data["adjusted_for"] = {
                "weather": self.adjusted_for.weather,
                "condition": self.adjusted_for.condition,
                "surface": self.adjusted_for.surface,
            }
        return data
