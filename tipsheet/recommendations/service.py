"""Recommendation service: runs aggregation cycles and answers queries.

One cycle = list actors → fetch each history → build profiles → aggregate →
replace the store snapshot. Cycles are serialised with an ``asyncio.Lock``.
A failed or empty cycle leaves the previous snapshot in place. Every
cycle, successful or not, is announced to registered listeners.
"""

import asyncio
import inspect
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Union

from tipsheet.analysis.aggregator import AggregationResult, StrategyAggregator
from tipsheet.analysis.profile import ProfileBuilder
from tipsheet.config import settings, utc_now
from tipsheet.errors import AggregationError, CollaboratorFailure, EmptyResultFailure
from tipsheet.models.profile import ActorProfile
from tipsheet.models.strategy import Recommendation
from tipsheet.models.wager import WagerRecord
from tipsheet.recommendations.context import adjust_for_context
from tipsheet.recommendations.store import RecommendationStore
from tipsheet.sources.history import HistorySource
from tipsheet.sources.races import RaceContext, RaceDetailsSource

logger = logging.getLogger(__name__)

CycleListener = Callable[["CycleResult"], Union[None, Awaitable[None]]]

STATUS_UPDATED = "updated"
STATUS_NO_UPDATE = "no_update"
STATUS_FAILED = "failed"


@dataclass
class CycleResult:
    """Outcome of one ``run_cycle`` call."""

    status: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    actors_considered: int = 0
    profiles_built: int = 0
    strategies: int = 0
    error: Optional[str] = None
    aggregation: Optional[AggregationResult] = field(default=None, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "actors_considered": self.actors_considered,
            "profiles_built": self.profiles_built,
            "strategies": self.strategies,
            "error": self.error,
        }


class RecommendationService:
    """Owns the store and the single-writer aggregation cycle."""

    def __init__(
        self,
        history_source: HistorySource,
        builder: ProfileBuilder,
        aggregator: StrategyAggregator,
        store: Optional[RecommendationStore] = None,
        race_source: Optional[RaceDetailsSource] = None,
        timeout: Optional[float] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.history_source = history_source
        self.builder = builder
        self.aggregator = aggregator
        self.store = store or RecommendationStore()
        self.race_source = race_source
        self.timeout = settings.collaborator_timeout if timeout is None else timeout
        self.clock = clock

        self.profiles: list[ActorProfile] = []
        self.last_cycle: Optional[CycleResult] = None
        self.cycles_completed = 0
        self._cycle_lock = asyncio.Lock()
        self._listeners: list[CycleListener] = []
        self._race_cache: dict[str, RaceContext] = {}

    # ── Cycle ──────────────────────────────────────────────

    def add_cycle_listener(self, listener: CycleListener) -> None:
        """Register a sync or async callable that receives every CycleResult."""
        self._listeners.append(listener)

    def remove_cycle_listener(self, listener: CycleListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def cycle_running(self) -> bool:
        return self._cycle_lock.locked()

    async def run_cycle(self) -> CycleResult:
        """Run one full cycle. Waits for any cycle already in flight."""
        async with self._cycle_lock:
            result = CycleResult(status=STATUS_FAILED, started_at=self.clock())
            try:
                await self._run_cycle(result)
            except EmptyResultFailure as e:
                result.status = STATUS_NO_UPDATE
                logger.info(f"Cycle produced no update: {e}")
            except AggregationError as e:
                result.status = STATUS_FAILED
                result.error = str(e)
                logger.error(f"Cycle discarded, keeping previous snapshot: {e}")
            except Exception as e:
                result.status = STATUS_FAILED
                result.error = str(e)
                logger.exception(f"Cycle failed, keeping previous snapshot: {e}")

            result.finished_at = self.clock()
            self.last_cycle = result
            self.cycles_completed += 1

        await self._notify(result)
        return result

    async def _run_cycle(self, result: CycleResult) -> None:
        actor_ids = await self.history_source.list_actor_ids()
        result.actors_considered = len(actor_ids)

        profiles = await self.analyze_actors(actor_ids)
        result.profiles_built = len(profiles)

        aggregation = await self.aggregator.aggregate(profiles, now=result.started_at)
        if aggregation is None:
            raise EmptyResultFailure("no valid profiles")
        result.aggregation = aggregation
        if not aggregation.strategies:
            raise EmptyResultFailure(f"no strategies from {aggregation.sample_size} profiles")

        # Commit point: nothing above has touched the store
        result.strategies = self.store.replace_snapshot(aggregation.strategies, now=result.started_at)
        self.profiles = profiles
        result.status = STATUS_UPDATED

    async def analyze_actors(self, actor_ids: list[str]) -> list[ActorProfile]:
        """Build profiles for each actor, skipping any that fail."""
        profiles = []
        for actor_id in actor_ids:
            try:
                profile = await self.analyze_actor(actor_id)
            except CollaboratorFailure as e:
                logger.warning(f"Skipping actor: {e}")
                continue
            if profile:
                profiles.append(profile)
        logger.info(f"Built {len(profiles)} profiles from {len(actor_ids)} actors")
        return profiles

    async def analyze_actor(self, actor_id: str) -> Optional[ActorProfile]:
        """Fetch one actor's history and build the profile.

        Raises:
            CollaboratorFailure: The history fetch raised or timed out.
        """
        history = await self._fetch_history(actor_id)
        return await self.builder.build(actor_id, history)

    async def _fetch_history(self, actor_id: str) -> list[WagerRecord]:
        try:
            return await asyncio.wait_for(
                self.history_source.fetch_history(actor_id), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise CollaboratorFailure(actor_id, f"history fetch timed out after {self.timeout}s") from e
        except Exception as e:
            raise CollaboratorFailure(actor_id, f"history fetch failed: {e}") from e

    async def _notify(self, result: CycleResult) -> None:
        for listener in list(self._listeners):
            try:
                outcome = listener(result)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.error(f"Cycle listener {listener!r} failed: {e}")

    # ── Queries ────────────────────────────────────────────

    def get_recommendations(
        self,
        venue: Optional[str] = None,
        category: Optional[str] = None,
        risk_tier: Optional[str] = None,
        min_confidence: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> list[Recommendation]:
        return self.store.query(
            venue=venue,
            category=category,
            risk_tier=risk_tier,
            min_confidence=min_confidence,
            limit=limit,
            now=self.clock(),
        )

    def get_strategy(self, venue: str, category: str, risk_tier: str) -> Optional[Recommendation]:
        return self.store.get(venue, category, risk_tier, now=self.clock())

    async def get_race_details(self, race_id: str) -> Optional[RaceContext]:
        """Race conditions for a race id, cached after the first lookup."""
        if race_id in self._race_cache:
            return self._race_cache[race_id]
        if self.race_source is None:
            return None
        try:
            race = await asyncio.wait_for(self.race_source.get_race(race_id), timeout=self.timeout)
        except Exception as e:
            logger.error(f"Error fetching race details for {race_id}: {e}")
            return None
        if race is not None:
            self._race_cache[race_id] = race
        return race

    async def get_recommendation_for_race(
        self,
        race_id: str,
        category: Optional[str] = None,
        risk_tier: Optional[str] = None,
        min_confidence: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> Optional[list[Recommendation]]:
        """Recommendations for the race's venue, boosted for its conditions.

        Returns None when the race is unknown.
        """
        race = await self.get_race_details(race_id)
        if race is None:
            return None
        recommendations = self.get_recommendations(
            venue=race.venue,
            category=category,
            risk_tier=risk_tier,
            min_confidence=min_confidence,
            limit=limit,
        )
        return adjust_for_context(recommendations, race)

    def get_top_actors(self, limit: int = 10) -> list[ActorProfile]:
        """Profiles from the last successful cycle, most profitable first."""
        return sorted(self.profiles, key=lambda p: p.profitability, reverse=True)[:limit]

    def get_consensus_strategies(self, top_n: int = 5) -> list[dict[str, Any]]:
        """How often each recommended strategy string appears among the top actors."""
        top = self.get_top_actors(top_n)
        if not top:
            return []
        counts = Counter()
        for profile in top:
            counts.update(dict.fromkeys(profile.recommended_strategies, 1))
        ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
        return [
            {"strategy": text, "frequency": count / len(top), "confidence": count / len(top)}
            for text, count in ranked
        ]
