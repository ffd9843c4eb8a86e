"""Error taxonomy for the recommendation engine.

Only ``AggregationError`` ever escapes a cycle, and only as far as
``RecommendationService.run_cycle`` which converts it into a failed
``CycleResult``. The others mark conditions that are logged and absorbed
at the seam where they occur.
"""


class TipsheetError(Exception):
    """Base class for all engine errors."""


class ValidationFailure(TipsheetError):
    """A profile fell below the analysis thresholds and was dropped."""


class CollaboratorFailure(TipsheetError):
    """A history fetch or pattern extraction call raised or timed out."""

    def __init__(self, actor_id: str, reason: str):
        self.actor_id = actor_id
        self.reason = reason
        super().__init__(f"{actor_id}: {reason}")


class EmptyResultFailure(TipsheetError):
    """No valid profiles or no strategies survived a cycle."""


class AggregationError(TipsheetError):
    """The cross-profile collaborator failed; the whole cycle is discarded."""
