"""Pytest configuration and fixtures for courier tests."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from courier.db.models import Base
from courier.models import InboundMessage, MessageKind

# 2024-01-01 was a Monday
FIXED_NOW = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable replacement for a ``now`` callable."""

    def __init__(self, value: datetime = FIXED_NOW) -> None:
        self.value = value

    def __call__(self) -> datetime:
        return self.value


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a database session for testing."""
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def session_factory(db_engine):
    """Create a session factory for testing."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
def mock_transport():
    """Create a connected mock chat transport."""
    transport = MagicMock()
    transport.name = "mock"
    transport.is_connected = True
    transport.send_message = AsyncMock(side_effect=lambda recipient, text: f"msg-{recipient}")
    return transport


@pytest.fixture
def make_message():
    """Factory for inbound chat messages."""

    def _make(
        text: str = "Hello there",
        sender_id: str = "1555",
        chat_id: str = "1555",
        kind: MessageKind = MessageKind.TEXT,
        is_group: bool = False,
        is_from_me: bool = False,
    ) -> InboundMessage:
        return InboundMessage(
            message_id="m-1",
            chat_id=chat_id,
            sender_id=sender_id,
            kind=kind,
            text=text,
            is_group=is_group,
            is_from_me=is_from_me,
        )

    return _make
