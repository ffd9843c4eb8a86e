"""Twitter/X message formatter for recommendations."""

import math
from typing import Optional

from tipsheet.models.strategy import Recommendation


def as_percent(fraction: float) -> int:
    """Whole percentage, halves rounded up."""
    return math.floor(fraction * 100 + 0.5)


def truncate_text(text: str, max_length: int) -> str:
    """Cut text to ``max_length`` characters, ending with "..." when cut."""
    if len(text) <= max_length:
        return text
    return text[:max(max_length - 3, 0)] + "..."


class TwitterFormatter:
    """Format recommendations as single tweets.

    - 280 character limit, applied to the whole message
    - One key insight (first pattern), cut to 50 characters
    - Fixed disclaimer and hashtags
    """

    MAX_TWEET_LENGTH = 280
    INSIGHT_LENGTH = 50

    DISCLAIMER = "⚠️ This is AI-generated analysis. Always bet responsibly."
    HASHTAGS = "#HorseRacing #BettingTips #AI"
    LIVE_HASHTAGS = "#HorseRacing #LiveBetting #AI"

    EMOJIS = {
        "racing": "\U0001F3C7",
        "fire": "\U0001F525",
        "strong": "\U0001F4AA",
        "thumbs_up": "\U0001F44D",
        "thinking": "\U0001F914",
        "insight": "\U0001F4A1",
        "chart": "\U0001F4CA",
    }

    @classmethod
    def confidence_emoji(cls, confidence: float) -> str:
        if confidence >= 0.9:
            return cls.EMOJIS["fire"]
        if confidence >= 0.8:
            return cls.EMOJIS["strong"]
        if confidence >= 0.7:
            return cls.EMOJIS["thumbs_up"]
        return cls.EMOJIS["thinking"]

    @classmethod
    def _insight(cls, recommendation: Recommendation) -> Optional[str]:
        if not recommendation.patterns:
            return None
        pattern = truncate_text(recommendation.patterns[0], cls.INSIGHT_LENGTH)
        return f"{cls.EMOJIS['insight']} Key Insight: {pattern}"

    @classmethod
    def format_recommendation(cls, recommendation: Recommendation) -> str:
        """Render a general tip from the current snapshot."""
        confidence = as_percent(recommendation.confidence)
        emoji = cls.confidence_emoji(recommendation.confidence)

        tweet = f"{cls.EMOJIS['racing']} Horse Racing Tip {emoji}\n\n"
        tweet += f"Track: {recommendation.venue}\n"
        tweet += f"Bet Type: {recommendation.category}\n"
        tweet += f"Risk Level: {recommendation.risk_tier.value}\n"
        tweet += f"Confidence: {confidence}%\n\n"

        insight = cls._insight(recommendation)
        if insight:
            tweet += f"{insight}\n\n"

        usage = recommendation.recommended_usage
        if usage:
            tweet += (
                f"{cls.EMOJIS['chart']} Recommended stake: "
                f"{as_percent(usage.recommended_stake)}% of bankroll\n"
            )
            tweet += f"Min odds: {usage.min_odds}x\n"

        tweet += f"\n{cls.DISCLAIMER}"
        tweet += f"\n\n{cls.HASHTAGS}"

        return truncate_text(tweet, cls.MAX_TWEET_LENGTH)

    @classmethod
    def format_race_recommendation(cls, recommendation: Recommendation) -> str:
        """Render a tip adjusted for a live race's conditions."""
        confidence = as_percent(recommendation.confidence)
        emoji = cls.confidence_emoji(recommendation.confidence)

        tweet = f"{cls.EMOJIS['racing']} Live Race Tip {emoji}\n\n"
        tweet += f"Track: {recommendation.venue}\n"

        conditions = recommendation.adjusted_for
        if conditions:
            shown = ", ".join(c for c in (conditions.weather, conditions.surface) if c)
            if shown:
                tweet += f"Conditions: {shown}\n"

        tweet += f"Bet Type: {recommendation.category}\n"
        tweet += f"Risk Level: {recommendation.risk_tier.value}\n"
        tweet += f"Confidence: {confidence}%\n\n"

        insight = cls._insight(recommendation)
        if insight:
            tweet += f"{insight}\n\n"

        usage = recommendation.recommended_usage
        if usage:
            tweet += (
                f"{cls.EMOJIS['chart']} Recommended stake: "
                f"{as_percent(usage.recommended_stake)}% of bankroll\n"
            )

        tweet += f"\n{cls.DISCLAIMER}"
        tweet += f"\n\n{cls.LIVE_HASHTAGS}"

        return truncate_text(tweet, cls.MAX_TWEET_LENGTH)
