"""Where wager histories come from.

The engine only needs two calls: which actors to look at, and each
actor's settled wagers. ``DatabaseHistorySource`` reads the ``wagers``
ledger table; ``StaticHistorySource`` serves an in-memory mapping for
staging and tests.
"""

import logging
from typing import Callable, Mapping, Optional, Protocol, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tipsheet.models.wager import Wager, WagerRecord

logger = logging.getLogger(__name__)

# Most recent settled wagers read per actor
HISTORY_LIMIT = 1000


class HistorySource(Protocol):
    async def list_actor_ids(self) -> list[str]: ...

    async def fetch_history(self, actor_id: str) -> list[WagerRecord]: ...


class StaticHistorySource:
    """In-memory history source."""

    def __init__(self, histories: Optional[Mapping[str, Sequence[WagerRecord]]] = None):
        self._histories = {k: list(v) for k, v in (histories or {}).items()}

    def set_history(self, actor_id: str, history: Sequence[WagerRecord]) -> None:
        self._histories[actor_id] = list(history)

    async def list_actor_ids(self) -> list[str]:
        return list(self._histories)

    async def fetch_history(self, actor_id: str) -> list[WagerRecord]:
        return list(self._histories.get(actor_id, []))


class DatabaseHistorySource:
    """History source backed by the ``wagers`` table.

    Args:
        session_factory: Callable returning an ``AsyncSession`` context
            manager, e.g. ``tipsheet.models.database.async_session``.
        min_bets: Actors with fewer settled wagers are not listed at all.
        limit: Maximum wagers read per actor, newest first.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        min_bets: int = 0,
        limit: int = HISTORY_LIMIT,
    ):
        self.session_factory = session_factory
        self.min_bets = min_bets
        self.limit = limit

    async def list_actor_ids(self) -> list[str]:
        """Actors with at least ``min_bets`` settled wagers, busiest first."""
        q = (
            select(Wager.actor_id, func.count(Wager.id).label("bets"))
            .where(Wager.result.isnot(None))
            .group_by(Wager.actor_id)
            .having(func.count(Wager.id) >= self.min_bets)
            .order_by(func.count(Wager.id).desc(), Wager.actor_id)
        )
        async with self.session_factory() as db:
            rows = (await db.execute(q)).all()
        return [actor_id for actor_id, _ in rows]

    async def fetch_history(self, actor_id: str) -> list[WagerRecord]:
        """Settled wagers for one actor in chronological order."""
        q = (
            select(Wager)
            .where(Wager.actor_id == actor_id, Wager.result.isnot(None))
            .order_by(Wager.placed_at.desc(), Wager.id.desc())
            .limit(self.limit)
        )
        async with self.session_factory() as db:
            rows = (await db.execute(q)).scalars().all()
        history = [w.to_record() for w in reversed(rows)]
        logger.debug(f"Fetched {len(history)} settled wagers for {actor_id}")
        return history
