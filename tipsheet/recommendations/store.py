"""In-memory store for the current strategy snapshot.

The snapshot is a plain dict that is never mutated after it is built.
``replace_snapshot`` builds a new dict and swaps the reference in one
assignment, so concurrent readers always see a complete snapshot, old or
new. Reads return ``Recommendation`` copies; decay is applied to the copy.
"""

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Iterable, Optional, Union

from tipsheet.config import settings, utc_now
from tipsheet.models.profile import RiskTier
from tipsheet.models.strategy import Recommendation, Strategy, StrategyKey

logger = logging.getLogger(__name__)

DECAY_FACTOR = 0.9


class RecommendationStore:
    """Holds one snapshot of strategies keyed by (venue, category, risk tier).

    Args:
        update_interval_ms: Entries older than this are returned with
            confidence × 0.9. Decay is a single step regardless of how stale
            the entry is, and is never written back.
    """

    def __init__(self, update_interval_ms: Optional[int] = None):
        interval = settings.update_interval_ms if update_interval_ms is None else update_interval_ms
        self.update_interval = timedelta(milliseconds=interval)
        self._snapshot: dict[StrategyKey, Strategy] = {}
        self.last_replaced: Optional[datetime] = None

    def __len__(self) -> int:
        return len(self._snapshot)

    @property
    def is_empty(self) -> bool:
        return not self._snapshot

    def replace_snapshot(self, strategies: Iterable[Strategy], now: Optional[datetime] = None) -> int:
        """Atomically replace every stored strategy. Returns the new size.

        Strategies without ``last_updated`` are stamped with ``now``. If a key
        repeats, the first occurrence wins.
        """
        now = now or utc_now()
        snapshot: dict[StrategyKey, Strategy] = {}
        for strategy in strategies:
            if strategy.key in snapshot:
                logger.debug(f"Duplicate strategy key dropped: {strategy.key}")
                continue
            if strategy.last_updated is None:
                strategy = replace(strategy, last_updated=now)
            snapshot[strategy.key] = strategy

        self._snapshot = snapshot
        self.last_replaced = now
        logger.info(f"Recommendation snapshot replaced: {len(snapshot)} strategies")
        return len(snapshot)

    def get(
        self,
        venue: str,
        category: str,
        risk_tier: Union[RiskTier, str],
        now: Optional[datetime] = None,
    ) -> Optional[Recommendation]:
        """Exact-key lookup; None when absent."""
        tier = RiskTier.parse(risk_tier)
        if tier is None:
            return None
        strategy = self._snapshot.get((venue, category, tier))
        if strategy is None:
            return None
        return self._project(strategy, now or utc_now())

    def query(
        self,
        venue: Optional[str] = None,
        category: Optional[str] = None,
        risk_tier: Optional[Union[RiskTier, str]] = None,
        min_confidence: Optional[float] = None,
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[Recommendation]:
        """Filter, rank and truncate the snapshot, then decay stale entries.

        Equality filters run first, then the stored confidence is compared
        with ``min_confidence``, then the survivors are sorted by confidence
        and cut to ``limit``.
        """
        if min_confidence is None:
            min_confidence = settings.query_min_confidence
        if limit is None:
            limit = settings.query_limit
        now = now or utc_now()

        snapshot = self._snapshot
        strategies = list(snapshot.values())
        if venue:
            strategies = [s for s in strategies if s.venue == venue]
        if category:
            strategies = [s for s in strategies if s.category == category]
        if risk_tier:
            tier = RiskTier.parse(risk_tier)
            strategies = [s for s in strategies if s.risk_tier == tier]

        strategies = [s for s in strategies if s.confidence >= min_confidence]
        strategies.sort(key=lambda s: s.confidence, reverse=True)
        return [self._project(s, now) for s in strategies[:max(limit, 0)]]

    def all(self, now: Optional[datetime] = None) -> list[Recommendation]:
        """Every stored strategy, highest confidence first."""
        now = now or utc_now()
        ranked = sorted(self._snapshot.values(), key=lambda s: s.confidence, reverse=True)
        return [self._project(s, now) for s in ranked]

    def is_stale(self, strategy: Strategy, now: datetime) -> bool:
        if strategy.last_updated is None:
            return False
        return now - strategy.last_updated > self.update_interval

    def _project(self, strategy: Strategy, now: datetime) -> Recommendation:
        if self.is_stale(strategy, now):
            return Recommendation.from_strategy(strategy, confidence=strategy.confidence * DECAY_FACTOR)
        return Recommendation.from_strategy(strategy)
