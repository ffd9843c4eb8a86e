"""Application configuration using Pydantic settings."""

from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def utc_now() -> datetime:
    """Current time in UTC (timezone-aware)."""
    return datetime.now(timezone.utc)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TIPSHEET_",
        extra="ignore",
    )

    # Database
    db_path: Path = Path("./data/tipsheet.db")

    # App
    debug: bool = False
    log_level: str = "INFO"
    mock_external: bool = False  # Never call OpenAI / Twitter, use canned responses

    # Profile thresholds
    min_bets_for_analysis: int = 50
    profitable_threshold: float = 1.5  # returns / stake, i.e. 150%

    # Recommendation store
    update_interval_ms: int = 300_000  # entries older than this decay on read
    query_min_confidence: float = 0.7
    query_limit: int = 10

    # Publishing
    publish_min_confidence: float = 0.8
    publish_limit: int = 3
    tweet_interval_seconds: int = 3600

    # Cycle scheduling
    cycle_interval_seconds: int = 300
    collaborator_timeout: float = 60.0  # seconds per LLM / history call

    # OpenAI
    openai_api_key: str = ""
    ai_model: str = "gpt-4o"

    # Twitter/X API
    twitter_api_key: str = ""
    twitter_api_secret: str = ""
    twitter_access_token: str = ""
    twitter_access_secret: str = ""

    @property
    def database_url(self) -> str:
        """SQLite database URL for SQLAlchemy."""
        return f"sqlite+aiosqlite:///{self.db_path}"


class FullSettings(Settings):
    """Settings with OpenAI key loaded from standard env var (no TIPSHEET_ prefix)."""

    def model_post_init(self, __context) -> None:
        """Load OpenAI key from standard env var or .env file if not set."""
        import os
        from dotenv import dotenv_values

        if not self.openai_api_key:
            self.openai_api_key = os.getenv("OPENAI_API_KEY", "")
        if not self.openai_api_key:
            env_vals = dotenv_values(".env")
            self.openai_api_key = env_vals.get("OPENAI_API_KEY", "") or ""


@lru_cache
def get_settings() -> FullSettings:
    """Get cached settings instance."""
    return FullSettings()


# Export for convenience
settings = get_settings()
