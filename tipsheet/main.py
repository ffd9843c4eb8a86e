"""FastAPI application entry point for Tipsheet."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tipsheet.ai.client import get_ai_client
from tipsheet.analysis.aggregator import StrategyAggregator
from tipsheet.analysis.extractor import PatternExtractor
from tipsheet.analysis.profile import ProfileBuilder
from tipsheet.api import recommendations as recommendations_api
from tipsheet.config import settings
from tipsheet.delivery.twitter import TwitterDelivery
from tipsheet.models.database import async_session, init_db
from tipsheet.recommendations.service import RecommendationService
from tipsheet.recommendations.store import RecommendationStore
from tipsheet.scheduler.manager import SchedulerManager
from tipsheet.sources.history import DatabaseHistorySource
from tipsheet.sources.races import StaticRaceDetailsSource

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_service(ai_client=None, history_source=None, race_source=None) -> RecommendationService:
    """Wire the engine from settings, letting callers swap any collaborator."""
    extractor = PatternExtractor(ai_client or get_ai_client())
    return RecommendationService(
        history_source=history_source or DatabaseHistorySource(
            async_session, min_bets=settings.min_bets_for_analysis
        ),
        builder=ProfileBuilder(extractor),
        aggregator=StrategyAggregator(extractor),
        store=RecommendationStore(),
        race_source=race_source or StaticRaceDetailsSource(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    logger.info("Starting Tipsheet...")
    await init_db()

    service = build_service()
    delivery = TwitterDelivery(service)
    scheduler = SchedulerManager()

    app.state.recommendation_service = service
    app.state.twitter_delivery = delivery
    app.state.scheduler = scheduler

    await scheduler.start()
    scheduler.setup_recommendation_jobs(service, delivery if delivery.is_configured() else None)
    logger.info(
        f"Scheduler started - cycle every {settings.cycle_interval_seconds}s, "
        f"tweets {'enabled' if delivery.is_configured() else 'disabled'}"
    )

    yield

    logger.info("Shutting down Tipsheet...")
    await scheduler.stop()
    await service.builder.extractor.ai_client.close()


app = FastAPI(title="Tipsheet", lifespan=lifespan)
app.include_router(
    recommendations_api.router, prefix="/api/recommendations", tags=["recommendations"]
)


@app.get("/health")
async def health():
    return {"status": "ok"}
