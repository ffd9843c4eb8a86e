"""Strategy snapshot storage, context adjustment and the cycle service."""

from tipsheet.recommendations.context import adjust_for_context
from tipsheet.recommendations.service import CycleResult, RecommendationService
from tipsheet.recommendations.store import RecommendationStore

__all__ = ["adjust_for_context", "CycleResult", "RecommendationService", "RecommendationStore"]
