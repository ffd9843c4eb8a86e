"""Domain and database models."""

from tipsheet.models.database import Base, async_session, init_db
from tipsheet.models.wager import Wager, WagerRecord, WagerResult
from tipsheet.models.profile import ActorProfile, RiskTier
from tipsheet.models.strategy import (
    AdjustedFor,
    Recommendation,
    RecommendedUsage,
    Strategy,
    StrategyKey,
)

__all__ = [
    "Base",
    "async_session",
    "init_db",
    "Wager",
    "WagerRecord",
    "WagerResult",
    "ActorProfile",
    "RiskTier",
    "AdjustedFor",
    "Recommendation",
    "RecommendedUsage",
    "Strategy",
    "StrategyKey",
]
