"""Shared test fixtures for Tipsheet."""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tipsheet.ai.mock_client import MockAIClient
from tipsheet.analysis.aggregator import usage_guidelines
from tipsheet.analysis.extractor import PatternExtractor
from tipsheet.models.database import Base
from tipsheet.models.profile import ActorProfile, RiskTier
from tipsheet.models.strategy import Strategy
from tipsheet.models.wager import WagerRecord

FIXED_NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


def make_history(
    total: int = 60,
    wins: int = 30,
    odds: float = 4.0,
    amount: float = 10.0,
    venue: str = "Churchill Downs",
    category: str = "win",
    start: Optional[datetime] = None,
) -> list[WagerRecord]:
    """Settled history where the first ``wins`` wagers won.

    Profitability is ``wins * odds / total`` since every stake is equal.
    """
    start = start or FIXED_NOW - timedelta(days=total)
    return [
        WagerRecord(
            venue=venue,
            category=category,
            amount=amount,
            odds=odds,
            result="won" if i < wins else "lost",
            timestamp=start + timedelta(days=i),
            race_id=f"race-{i}",
        )
        for i in range(total)
    ]


def make_profile(
    actor_id: str,
    venues=("Churchill Downs",),
    categories=("win",),
    patterns=(),
    risk_tier: Optional[RiskTier] = RiskTier.MODERATE,
    profitability: float = 2.0,
    total_bets: int = 60,
    recommended_strategies=(),
) -> ActorProfile:
    return ActorProfile(
        actor_id=actor_id,
        profitability=profitability,
        total_bets=total_bets,
        win_rate=0.5,
        risk_tier=risk_tier,
        preferred_venues=tuple(venues),
        preferred_categories=tuple(categories),
        patterns=tuple(patterns),
        recommended_strategies=tuple(recommended_strategies),
        analysed_at=FIXED_NOW,
    )


def make_strategy(
    venue: str = "Churchill Downs",
    category: str = "win",
    risk_tier: RiskTier = RiskTier.MODERATE,
    confidence: float = 0.9,
    patterns=("Win bets at Churchill Downs on fast dirt",),
    last_updated: Optional[datetime] = FIXED_NOW,
) -> Strategy:
    return Strategy(
        venue=venue,
        category=category,
        risk_tier=risk_tier,
        confidence=confidence,
        patterns=tuple(patterns),
        recommended_usage=usage_guidelines(risk_tier, confidence),
        last_updated=last_updated,
    )


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Session factory bound to the in-memory engine."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_ai_client():
    """Mock AI client that returns predictable responses."""
    client = MagicMock()
    client.generate = AsyncMock(return_value="")
    client.close = AsyncMock()
    return client


@pytest.fixture
def canned_extractor() -> PatternExtractor:
    """Extractor backed by the staging client's canned analyses."""
    return PatternExtractor(MockAIClient())
