"""Twitter/X delivery via Tweepy (Twitter API v2 with OAuth 1.0a)."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

import tweepy

from tipsheet.config import settings, utc_now
from tipsheet.formatters.twitter import TwitterFormatter
from tipsheet.models.strategy import Recommendation, StrategyKey
from tipsheet.recommendations.service import RecommendationService

logger = logging.getLogger(__name__)

MAX_DELIVERY_RETRIES = 2
RETRY_DELAYS = [5, 15]  # seconds


class TwitterDelivery:
    """Post recommendations to Twitter using Tweepy.

    Requires Twitter API setup with:
    - TIPSHEET_TWITTER_API_KEY (Consumer Key)
    - TIPSHEET_TWITTER_API_SECRET (Consumer Secret)
    - TIPSHEET_TWITTER_ACCESS_TOKEN
    - TIPSHEET_TWITTER_ACCESS_SECRET

    A recommendation key is tweeted at most once per ``tweet_interval``.
    """

    def __init__(
        self,
        service: RecommendationService,
        client: Optional[tweepy.Client] = None,
        tweet_interval_seconds: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.service = service
        self._client = client
        interval = settings.tweet_interval_seconds if tweet_interval_seconds is None else tweet_interval_seconds
        self.tweet_interval = timedelta(seconds=interval)
        self.clock = clock
        self.last_tweet_time: dict[StrategyKey, datetime] = {}
        self.retry_delays = list(RETRY_DELAYS)

    def is_configured(self) -> bool:
        """Check if Twitter delivery is configured."""
        return self._client is not None or bool(
            settings.twitter_api_key
            and settings.twitter_api_secret
            and settings.twitter_access_token
            and settings.twitter_access_secret
        )

    def _get_client(self) -> tweepy.Client:
        """Get authenticated Tweepy client."""
        if self._client is None:
            if not self.is_configured():
                raise ValueError("Twitter API not configured. Set TIPSHEET_TWITTER_* in .env")
            self._client = tweepy.Client(
                consumer_key=settings.twitter_api_key,
                consumer_secret=settings.twitter_api_secret,
                access_token=settings.twitter_access_token,
                access_token_secret=settings.twitter_access_secret,
            )
        return self._client

    async def post(self, text: str) -> dict:
        """Post a single tweet with retry.

        Returns:
            Dict with post status and tweet ID
        """
        if settings.mock_external:
            logger.info(f"[MOCK] Would tweet: {text[:60]!r}")
            return {"status": "mock", "tweet_id": None}

        if len(text) > TwitterFormatter.MAX_TWEET_LENGTH:
            raise ValueError(f"Tweet too long: {len(text)} chars")

        last_error = None
        for attempt in range(MAX_DELIVERY_RETRIES + 1):
            try:
                client = self._get_client()
                # Blocking Tweepy call, run in a worker thread
                response = await asyncio.to_thread(client.create_tweet, text=text)
                tweet_id = response.data["id"]
                logger.info(f"Posted tweet {tweet_id}")
                return {"status": "posted", "tweet_id": tweet_id}
            except (tweepy.TweepyException, ConnectionError) as e:
                last_error = e
                if attempt < MAX_DELIVERY_RETRIES:
                    delay = self.retry_delays[min(attempt, len(self.retry_delays) - 1)]
                    logger.warning(
                        f"Tweet failed (attempt {attempt + 1}/{MAX_DELIVERY_RETRIES + 1}), "
                        f"retrying in {delay}s: {e}"
                    )
                    await asyncio.sleep(delay)

        logger.error(f"Tweet failed after {MAX_DELIVERY_RETRIES + 1} attempts: {last_error}")
        raise last_error

    def _recently_tweeted(self, rec: Recommendation, now: datetime) -> bool:
        last = self.last_tweet_time.get(rec.key)
        return last is not None and now - last <= self.tweet_interval

    async def tweet_latest_recommendations(self) -> list[dict]:
        """Tweet the strongest current recommendations not tweeted recently."""
        recommendations = self.service.get_recommendations(
            min_confidence=settings.publish_min_confidence,
            limit=settings.publish_limit,
        )
        if not recommendations:
            logger.info("No recommendations to tweet")
            return []

        results = []
        for rec in recommendations:
            now = self.clock()
            if self._recently_tweeted(rec, now):
                continue
            try:
                results.append(await self.post(TwitterFormatter.format_recommendation(rec)))
            except Exception as e:
                logger.error(f"Error tweeting recommendation {rec.key}: {e}")
                continue
            self.last_tweet_time[rec.key] = now
        return results

    async def tweet_race_recommendation(self, race_id: str) -> Optional[dict]:
        """Tweet the top context-adjusted recommendation for a race."""
        recommendations = await self.service.get_recommendation_for_race(
            race_id, min_confidence=settings.publish_min_confidence,
        )
        if not recommendations:
            logger.info(f"No recommendation available for race {race_id}")
            return None

        tweet = TwitterFormatter.format_race_recommendation(recommendations[0])
        return await self.post(tweet)
