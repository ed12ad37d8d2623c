"""Courier FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator
from zoneinfo import ZoneInfo

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from courier.channels import TelegramTransport, Transport
from courier.config import Settings
from courier.db import create_engine, create_session_factory
from courier.db.models import Base
from courier.errors import InvalidScheduleError, TaskNotFoundError
from courier.routes import auto_reply_router, tasks_router
from courier.services import AutoReplyService, SchedulerService

logger = logging.getLogger(__name__)


async def _task_not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
    )


async def _invalid_schedule_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or Settings()

    # Initialize database
    engine: AsyncEngine | None = None
    session_factory = None

    try:
        engine = create_engine(settings.database_url, echo=settings.db_echo)
        session_factory = create_session_factory(engine)
        logger.info(
            f"Database connection configured: {settings.database_url.split('@')[-1]}"
        )
    except Exception as e:
        logger.warning(
            f"Failed to configure database, running without persistence: {e}"
        )

    # Initialize chat transport
    transport: Transport | None = None
    if settings.telegram_bot_token:
        transport = TelegramTransport(
            bot_token=settings.telegram_bot_token,
            allowed_chat_ids=settings.telegram_allowed_chat_ids,
        )
    else:
        logger.warning("No chat transport configured, messages will not be sent")

    # Initialize core services
    scheduler = SchedulerService(
        transport=transport,
        tz=ZoneInfo(settings.timezone) if settings.timezone else None,
        history_size=settings.execution_history_size,
    )
    auto_reply = AutoReplyService(
        transport=transport,
        session_factory=session_factory,
        max_concurrent=settings.max_concurrent_replies,
    )

    if transport is not None:
        transport.on_message(auto_reply.handle_message)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Courier starting up")

        if engine:
            try:
                async with engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
                logger.info("Database tables created/verified")
            except Exception as e:
                logger.error(f"Database initialization error: {e}")

        await auto_reply.load_config()

        if transport is not None:
            await transport.start()

        await scheduler.start()

        yield

        await scheduler.stop()
        await auto_reply.stop()

        if transport is not None:
            await transport.stop()

        if engine:
            await engine.dispose()
            logger.info("Database connection closed")

        logger.info("Courier shutting down")

    courier_app = FastAPI(
        title="Courier",
        description="Scheduled messaging and AI auto-replies for chat transports",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store services in app.state for dependency injection
    courier_app.state.scheduler = scheduler
    courier_app.state.auto_reply = auto_reply
    courier_app.state.transport = transport
    courier_app.state.settings = settings

    courier_app.add_exception_handler(TaskNotFoundError, _task_not_found_handler)
    courier_app.add_exception_handler(InvalidScheduleError, _invalid_schedule_handler)

    # Include routers
    courier_app.include_router(tasks_router)
    courier_app.include_router(auto_reply_router)

    return courier_app
