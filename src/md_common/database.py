"""Async engine and session factory for the Order Store database.

Repositories issue raw SQL through the session; no ORM models are declared.
"""
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import settings

engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DATABASE_POOL_SIZE,
    max_overflow=settings.DATABASE_MAX_OVERFLOW,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request; the service commits or rolls back."""
    async with async_session_factory() as session:
        yield session


async def ping_database() -> None:
    """Fail fast at startup when the orders database is unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
