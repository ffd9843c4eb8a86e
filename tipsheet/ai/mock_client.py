"""Mock AI client for staging environment.

Returns canned analyses that the section parser can fully read, without
making any real API calls. Used when TIPSHEET_MOCK_EXTERNAL=true.
"""

import logging

logger = logging.getLogger(__name__)


# Header-sectioned actor analysis, the shape the fallback parser expects
CANNED_ACTOR_ANALYSIS = """Betting Patterns:

Backs on-pace runners at Churchill Downs when the track is fast.

Prefers win and place bets on favourites under 3.0 on dirt.

Preferred Tracks:

Churchill Downs

Saratoga

Preferred Bet Types:

win

place

Risk Profile:

Moderate

Success Factors:

Disciplined staking with flat unit sizes.

Recommended Strategies:

Focus on fast dirt sprints at Churchill Downs.
"""

# Common-pattern analysis across many profiles
CANNED_AGGREGATE_ANALYSIS = """Betting Patterns:

Win bets at Churchill Downs on fast dirt return the most.

Timing Patterns:

Late market support in the final 10 minutes is followed at Saratoga.

Selection Patterns:

Place bets on horses drawn inside on a firm turf course.

Management Patterns:

Stakes never exceed 3% of bankroll.
"""


class MockAIClient:
    """Mock AI client that returns canned content without API calls.

    Matches the interface of AIClient so it can be swapped in transparently.
    """

    def __init__(self, **kwargs):
        self.model = "mock"
        self._api_key = None
        self._client = None

    async def close(self) -> None:
        """No-op, nothing to close."""
        pass

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> str:
        """Return canned content matching the kind of analysis requested."""
        if "Actor Profiles:" in user_prompt:
            logger.info("[MOCK] generate() called for aggregate analysis")
            return CANNED_AGGREGATE_ANALYSIS
        logger.info("[MOCK] generate() called for actor analysis")
        return CANNED_ACTOR_ANALYSIS
