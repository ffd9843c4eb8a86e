"""Actor profile and risk tier models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional

from tipsheet.config import utc_now


class RiskTier(str, Enum):
    """Coarse risk classification. Declaration order is the tie-break order."""

    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"

    @classmethod
    def parse(cls, value: Any) -> Optional["RiskTier"]:
        """Resolve a tier from an enum, exact value, or free text.

        Free text such as "Moderate - sizes up on favourites" resolves to the
        first tier word it contains. Returns None when nothing matches.
        """
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if not text:
            return None
        try:
            return cls(text)
        except ValueError:
            pass
        hits = [(text.find(t.value), t) for t in cls if t.value in text]
        if not hits:
            return None
        return min(hits, key=lambda h: h[0])[1]


def unique_ordered(values: Iterable[str]) -> tuple[str, ...]:
    """De-duplicate while keeping first-seen order, dropping blanks."""
    seen: dict[str, None] = {}
    for v in values:
        v = (v or "").strip()
        if v and v not in seen:
            seen[v] = None
    return tuple(seen)


@dataclass(frozen=True)
class ActorProfile:
    """Validated performance profile for one actor, built once per cycle."""

    actor_id: str
    profitability: float
    total_bets: int
    win_rate: float
    risk_tier: Optional[RiskTier] = None
    preferred_venues: tuple[str, ...] = ()
    preferred_categories: tuple[str, ...] = ()
    patterns: tuple[str, ...] = ()
    success_factors: tuple[str, ...] = ()
    recommended_strategies: tuple[str, ...] = ()
    analysed_at: datetime = field(default_factory=utc_now)

    def is_valid(self, min_bets: int, profitable_threshold: float) -> bool:
        """True when the profile clears both analysis thresholds."""
        return self.total_bets >= min_bets and self.profitability >= profitable_threshold

    def to_dict(self) -> dict[str, Any]:
        return {
            "actor_id": self.actor_id,
            "profitability": round(self.profitability, 4),
            "total_bets": self.total_bets,
            "win_rate": round(self.win_rate, 4),
            "risk_tier": self.risk_tier.value if self.risk_tier else None,
            "preferred_venues": list(self.preferred_venues),
            "preferred_categories": list(self.preferred_categories),
            "patterns": list(self.patterns),
            "success_factors": list(self.success_factors),
            "recommended_strategies": list(self.recommended_strategies),
            "analysed_at": self.analysed_at.isoformat(),
        }
