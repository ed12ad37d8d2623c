"""Database engine and session management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    Args:
        database_url: SQLAlchemy async URL (sqlite+aiosqlite://..., postgresql+asyncpg://...)
        echo: Whether to log SQL statements

    Returns:
        Configured AsyncEngine instance
    """
    return create_async_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections on checkout
        echo=echo,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory.

    Args:
        engine: The async engine to use

    Returns:
        Session factory that produces AsyncSession instances
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@asynccontextmanager
async def get_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Get a database session that commits on success and rolls back on error.

    Example:
        async with get_session(session_factory) as session:
            await AutoReplyConfigRepository(session).save(config)
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
