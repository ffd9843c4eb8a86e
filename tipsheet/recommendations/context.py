"""Re-score recommendations against live race conditions."""

from typing import Iterable, Optional, Sequence

from tipsheet.models.strategy import AdjustedFor, Recommendation
from tipsheet.sources.races import RaceContext

CONTEXT_BOOST = 1.1


def _mentions(patterns: Sequence[str], value: Optional[str]) -> bool:
    if not value:
        return False
    needle = value.lower()
    return any(needle in p.lower() for p in patterns)


def context_multiplier(patterns: Sequence[str], context: RaceContext) -> float:
    """×1.1 for each of condition, weather and surface mentioned by any pattern."""
    multiplier = 1.0
    for value in (context.condition, context.weather, context.surface):
        if _mentions(patterns, value):
            multiplier *= CONTEXT_BOOST
    return multiplier


def adjust_for_context(
    recommendations: Iterable[Recommendation],
    context: RaceContext,
) -> list[Recommendation]:
    """Boost recommendations whose patterns mention the live conditions.

    Callers are expected to have filtered to ``context.venue`` already.
    Inputs are not modified; the result is re-ranked by adjusted confidence.
    """
    adjusted_for = AdjustedFor(
        weather=context.weather,
        condition=context.condition,
        surface=context.surface,
    )
    adjusted = [
        Recommendation.from_strategy(
            rec,
            confidence=rec.confidence * context_multiplier(rec.patterns, context),
            adjusted_for=adjusted_for,
        )
        for rec in recommendations
    ]
    return sorted(adjusted, key=lambda r: r.confidence, reverse=True)
