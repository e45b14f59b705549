"""
Database configuration and session management
"""
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from tiffin_tracker.config import Settings, get_settings


def _get_async_url(url: str) -> str:
    """Convert database URL to async variant"""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///")
    return url


def create_engine_from_settings(settings: Settings = None) -> AsyncEngine:
    """Create the async engine for the configured database"""
    settings = settings or get_settings()
    return create_async_engine(
        _get_async_url(settings.DATABASE_URL),
        echo=settings.DEBUG,
        future=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


# Base class for models
Base = declarative_base()


async def init_models(engine: AsyncEngine) -> None:
    """Create all tables"""
    # Import models so they register on Base.metadata
    import tiffin_tracker.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
