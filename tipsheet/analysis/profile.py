"""Build validated actor profiles from settled wager histories."""

import asyncio
import logging
from typing import Optional, Sequence

from tipsheet.analysis.extractor import PatternExtractor
from tipsheet.config import settings, utc_now
from tipsheet.errors import CollaboratorFailure, ValidationFailure
from tipsheet.models.profile import ActorProfile, RiskTier, unique_ordered
from tipsheet.models.wager import WagerRecord

logger = logging.getLogger(__name__)


def calculate_profitability(history: Sequence[WagerRecord]) -> float:
    """Total returns on winning wagers divided by total staked.

    Returns 0 for an empty history or when nothing was staked.
    """
    total_staked = sum(w.amount for w in history)
    if total_staked <= 0:
        return 0.0
    total_returns = sum(w.amount * w.odds for w in history if w.won)
    return total_returns / total_staked


def calculate_win_rate(history: Sequence[WagerRecord]) -> float:
    if not history:
        return 0.0
    return sum(1 for w in history if w.won) / len(history)


class ProfileBuilder:
    """Turns one actor's history into an ``ActorProfile`` or nothing.

    Histories that are too short or not profitable enough never reach the
    extractor. Extractor failures and timeouts drop the actor for this
    cycle instead of raising.
    """

    def __init__(
        self,
        extractor: PatternExtractor,
        min_bets_for_analysis: Optional[int] = None,
        profitable_threshold: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        self.extractor = extractor
        self.min_bets_for_analysis = (
            settings.min_bets_for_analysis if min_bets_for_analysis is None else min_bets_for_analysis
        )
        self.profitable_threshold = (
            settings.profitable_threshold if profitable_threshold is None else profitable_threshold
        )
        self.timeout = settings.collaborator_timeout if timeout is None else timeout

    def is_history_valid(self, history: Sequence[WagerRecord]) -> bool:
        return len(history) >= self.min_bets_for_analysis

    def _validate(self, actor_id: str, history: Sequence[WagerRecord]) -> float:
        """Return profitability, or raise ValidationFailure."""
        if not self.is_history_valid(history):
            raise ValidationFailure(
                f"{actor_id}: {len(history)} bets < {self.min_bets_for_analysis}"
            )
        profitability = calculate_profitability(history)
        if profitability < self.profitable_threshold:
            raise ValidationFailure(
                f"{actor_id}: profitability {profitability:.2f} < {self.profitable_threshold}"
            )
        return profitability

    async def build(self, actor_id: str, history: Sequence[WagerRecord]) -> Optional[ActorProfile]:
        """Build a profile, or return None if the actor is dropped."""
        try:
            profitability = self._validate(actor_id, history)
        except ValidationFailure as e:
            logger.debug(f"Profile rejected: {e}")
            return None

        try:
            analysis = await self._extract(actor_id, history)
        except CollaboratorFailure as e:
            logger.warning(f"Skipping actor after pattern extraction failure: {e}")
            return None

        return ActorProfile(
            actor_id=actor_id,
            profitability=profitability,
            total_bets=len(history),
            win_rate=calculate_win_rate(history),
            risk_tier=RiskTier.parse(analysis.risk_tier),
            preferred_venues=unique_ordered(analysis.preferred_venues),
            preferred_categories=unique_ordered(analysis.preferred_categories),
            patterns=tuple(p.strip() for p in analysis.patterns if p.strip()),
            success_factors=tuple(analysis.success_factors),
            recommended_strategies=tuple(analysis.recommended_strategies),
            analysed_at=utc_now(),
        )

    async def _extract(self, actor_id: str, history: Sequence[WagerRecord]):
        try:
            return await asyncio.wait_for(self.extractor.extract(history), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise CollaboratorFailure(
                actor_id, f"pattern extraction timed out after {self.timeout}s"
            ) from e
        except Exception as e:
            raise CollaboratorFailure(actor_id, f"pattern extraction failed: {e}") from e
