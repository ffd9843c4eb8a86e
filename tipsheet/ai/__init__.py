"""LLM access for pattern extraction."""

from tipsheet.ai.client import AIClient, get_ai_client
from tipsheet.ai.mock_client import MockAIClient

__all__ = ["AIClient", "MockAIClient", "get_ai_client"]
