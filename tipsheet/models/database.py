"""Database setup and session management."""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from tipsheet.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


# Create async engine with SQLite timeout for concurrent access
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    connect_args={"timeout": 30},
)

# Session factory
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db() -> None:
    """Initialize the database, creating all tables."""
    # Import models to ensure they're registered with Base
    from tipsheet.models import wager  # noqa: F401

    settings.db_path.parent.mkdir(parents=True, exist_ok=True)

    async with engine.begin() as conn:
        # Enable WAL mode and busy timeout for concurrent access
        await conn.execute(text("PRAGMA journal_mode=WAL"))
        await conn.execute(text("PRAGMA busy_timeout=30000"))

        await conn.run_sync(Base.metadata.create_all)

    logger.info(f"Database initialised at {settings.db_path}")

