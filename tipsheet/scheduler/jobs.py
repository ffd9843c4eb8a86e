"""Job definitions for scheduled tasks."""

import logging
from enum import Enum
from typing import Optional

from tipsheet.delivery.twitter import TwitterDelivery
from tipsheet.recommendations.service import RecommendationService

logger = logging.getLogger(__name__)


class JobType(str, Enum):
    """Types of scheduled jobs."""

    AGGREGATION_CYCLE = "aggregation_cycle"
    TWEET_RECOMMENDATIONS = "tweet_recommendations"


async def aggregation_cycle_job(service: RecommendationService) -> dict:
    """Run one aggregation cycle and summarise it."""
    result = await service.run_cycle()
    logger.info(
        f"Aggregation cycle {result.status}: {result.profiles_built}/{result.actors_considered} "
        f"profiles, {result.strategies} strategies"
    )
    return result.to_dict()


async def tweet_recommendations_job(delivery: Optional[TwitterDelivery]) -> dict:
    """Tweet the current top recommendations, if delivery is set up."""
    if delivery is None or not delivery.is_configured():
        logger.debug("Twitter delivery not configured, skipping tweet job")
        return {"status": "skipped", "posted": 0}
    posted = await delivery.tweet_latest_recommendations()
    return {"status": "ok", "posted": len(posted)}
