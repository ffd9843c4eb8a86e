"""OpenAI API client wrapper."""

import asyncio
import logging
import re
from typing import Optional

from openai import AsyncOpenAI, RateLimitError

from tipsheet.config import settings

logger = logging.getLogger(__name__)

# Retry settings for rate limits
MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 45  # seconds if we can't parse the wait time


def _usage_summary(response) -> str:
    """Token counts for the log line, empty when the response carries none."""
    usage = getattr(response, "usage", None)
    if not usage:
        return ""
    prompt = getattr(usage, "prompt_tokens", 0) or 0
    completion = getattr(usage, "completion_tokens", 0) or 0
    return f" | tokens: {prompt:,}in + {completion:,}out = {prompt + completion:,}"


class AIClient:
    """Wrapper for the OpenAI Chat Completions API."""

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
    ):
        self.model = model or settings.ai_model
        self._api_key = api_key
        self._client: Optional[AsyncOpenAI] = None

    @property
    def client(self) -> AsyncOpenAI:
        """Get or create OpenAI client."""
        if self._client is None:
            key = self._api_key or settings.openai_api_key
            if not key:
                raise ValueError("OPENAI_API_KEY not configured")
            self._client = AsyncOpenAI(api_key=key)
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client to free connections."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    def _parse_retry_after(self, error_message: str) -> float:
        """Extract retry delay from rate limit error message."""
        # Look for "Please try again in X.XXs" or "Please try again in Xs"
        match = re.search(r"try again in (\d+\.?\d*)s", str(error_message))
        if match:
            return float(match.group(1)) + 1  # Add 1s buffer
        return DEFAULT_RETRY_DELAY

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> str:
        """Generate a completion, retrying on rate limits.

        Args:
            system_prompt: System message defining the analyst role
            user_prompt: The analysis request
            temperature: Creativity level (0-1)
            max_tokens: Maximum response length

        Returns:
            Generated content as string

        Raises:
            RateLimitError: If all retries are exhausted
            Exception: Any non-rate-limit API error
        """
        last_error = None

        for attempt in range(MAX_RETRIES + 1):
            try:
                response = await self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
                try:
                    content = response.choices[0].message.content or ""
                except (AttributeError, TypeError, IndexError, KeyError) as e:
                    logger.error(f"Malformed API response from {self.model}: {e}")
                    raise Exception(f"Malformed API response: {e}") from e
                logger.info(
                    f"Generated {len(content)} chars with {self.model}{_usage_summary(response)}"
                )
                return content

            except RateLimitError as e:
                last_error = e
                retry_after = self._parse_retry_after(str(e))

                if attempt < MAX_RETRIES:
                    logger.warning(
                        f"Rate limit hit (attempt {attempt + 1}/{MAX_RETRIES + 1}). "
                        f"Waiting {retry_after:.1f}s before retry..."
                    )
                    await asyncio.sleep(retry_after)
                else:
                    logger.error(f"Rate limit: All {MAX_RETRIES + 1} attempts exhausted.")
                    raise

            except Exception as e:
                logger.error(f"OpenAI API error: {e}")
                raise

        raise last_error


def get_ai_client():
    """Return the real client, or the canned one when external calls are mocked."""
    if settings.mock_external:
        from tipsheet.ai.mock_client import MockAIClient

        return MockAIClient()
    return AIClient()
