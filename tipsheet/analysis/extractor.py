"""Prompted pattern extraction over wager histories and actor profiles."""

import json
import logging
from typing import Sequence

from tipsheet.analysis.sections import (
    CommonPatterns,
    PatternAnalysis,
    parse_actor_analysis,
    parse_common_patterns,
)
from tipsheet.models.profile import ActorProfile
from tipsheet.models.wager import WagerRecord

logger = logging.getLogger(__name__)

ACTOR_SYSTEM_PROMPT = (
    "You are an expert horse racing analyst specializing in identifying successful "
    "betting patterns. Analyze the betting history to identify key strategies and "
    "patterns that lead to profitable outcomes."
)

AGGREGATE_SYSTEM_PROMPT = (
    "You are an expert horse racing analyst specializing in identifying and combining "
    "successful betting strategies. Analyze multiple betting profiles to identify common "
    "patterns and create optimal betting strategies."
)

_ACTOR_JSON_SHAPE = """```json
{
  "patterns": ["Key betting pattern, mentioning the track, bet type and conditions"],
  "preferred_venues": ["Track name"],
  "preferred_categories": ["Bet type, e.g. win, place, show, exacta"],
  "risk_tier": "conservative | moderate | aggressive",
  "success_factors": ["Success factor"],
  "recommended_strategies": ["Strategy to emulate"]
}
```"""

_AGGREGATE_JSON_SHAPE = """```json
{
  "betting": ["Common betting pattern"],
  "timing": ["Common timing pattern"],
  "selection": ["Common selection pattern"],
  "management": ["Common bankroll management pattern"]
}
```"""


def build_actor_prompt(history: Sequence[WagerRecord]) -> str:
    """Serialise a wager history into the actor analysis request."""
    payload = json.dumps([w.to_dict() for w in history], indent=2)
    return f"""Analyze the following betting history from a profitable horse racing better:

Betting History:
{payload}

Please analyze and provide:
1. Key betting patterns and strategies
2. Preferred tracks and conditions
3. Preferred bet types and sizing
4. Risk profile assessment
5. Success factors
6. Recommended strategies to emulate

Respond with a JSON object of this shape:

{_ACTOR_JSON_SHAPE}

If you cannot produce JSON, use the section headers "Betting Patterns:", "Preferred Tracks:",
"Preferred Bet Types:", "Risk Profile:", "Success Factors:" and "Recommended Strategies:"."""


def build_aggregate_prompt(profiles: Sequence[ActorProfile]) -> str:
    """Serialise validated profiles into the cross-profile analysis request."""
    payload = json.dumps([p.to_dict() for p in profiles], indent=2)
    return f"""Analyze the following betting profiles from successful horse racing betters:

Actor Profiles:
{payload}

Please analyze and provide:
1. Common successful betting patterns
2. Shared track preferences and conditions
3. Consensus bet types and sizing strategies
4. Risk management approaches
5. Key success factors
6. Optimal combined strategies
7. Potential strategy conflicts and resolutions

Focus on identifying patterns that appear across multiple successful betters.
Mention track names and bet types explicitly in every pattern.

Respond with a JSON object of this shape:

{_AGGREGATE_JSON_SHAPE}

If you cannot produce JSON, use the section headers "Betting Patterns:", "Timing Patterns:",
"Selection Patterns:" and "Management Patterns:"."""


class PatternExtractor:
    """Turns histories and profiles into structured pattern annotations via an LLM.

    ``ai_client`` is anything with ``AIClient.generate``'s signature,
    including ``MockAIClient`` for staging.
    """

    def __init__(self, ai_client):
        self.ai_client = ai_client

    async def extract(self, history: Sequence[WagerRecord]) -> PatternAnalysis:
        """Analyse one actor's history. Raises whatever the client raises."""
        response = await self.ai_client.generate(
            system_prompt=ACTOR_SYSTEM_PROMPT,
            user_prompt=build_actor_prompt(history),
            temperature=0.7,
            max_tokens=1500,
        )
        analysis = parse_actor_analysis(response)
        logger.debug(
            f"Extracted {len(analysis.patterns)} patterns, "
            f"{len(analysis.preferred_venues)} venues, "
            f"{len(analysis.preferred_categories)} categories"
        )
        return analysis

    async def common_patterns(self, profiles: Sequence[ActorProfile]) -> CommonPatterns:
        """Analyse validated profiles together. Raises whatever the client raises."""
        response = await self.ai_client.generate(
            system_prompt=AGGREGATE_SYSTEM_PROMPT,
            user_prompt=build_aggregate_prompt(profiles),
            temperature=0.7,
            max_tokens=2000,
        )
        return parse_common_patterns(response)
