"""AI auto-reply service for inbound chat messages."""

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from courier.db.engine import get_session
from courier.db.repositories.config import AutoReplyConfigRepository
from courier.errors import ProviderRateLimitedError
from courier.models.auto_reply import AutoReplyConfig
from courier.models.messages import InboundMessage, MessageKind
from courier.services.providers import ProviderClient, create_provider

if TYPE_CHECKING:
    from courier.channels.base import Transport

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
RATE_LIMIT_BACKOFF = 30  # seconds, multiplied by the attempt number
ERROR_BACKOFF = 5  # seconds, multiplied by the attempt number
TRUNCATION_MARKER = "..."
TEST_MESSAGE = "Hello, this is a test message."

MEDIA_PLACEHOLDERS = {
    MessageKind.IMAGE: "[Image message]",
    MessageKind.VIDEO: "[Video message]",
    MessageKind.AUDIO: "[Audio message]",
    MessageKind.DOCUMENT: "[Document message]",
}


def extract_text(message: InboundMessage) -> str:
    """Text the AI should answer; media kinds map to a placeholder."""
    if message.kind in (MessageKind.TEXT, MessageKind.EXTENDED_TEXT):
        return message.text
    return MEDIA_PLACEHOLDERS.get(message.kind, "")


def should_reply(message: InboundMessage, config: AutoReplyConfig) -> bool:
    """Decide whether ``message`` gets an AI reply under ``config``.

    A non-empty whitelist is the exclusive gate: senders not on it are
    ignored. An empty whitelist lets every direct message through.
    """
    if not config.enabled:
        return False
    if message.is_from_me or message.is_group:
        return False
    if not extract_text(message).strip():
        return False
    if config.whitelist_numbers and message.sender_id not in config.whitelist_numbers:
        return False
    return True


def shape_response(text: str, max_length: int) -> str:
    """Trim whitespace and cap the reply at ``max_length`` characters."""
    text = text.strip()
    if len(text) > max_length:
        text = text[:max_length] + TRUNCATION_MARKER
    return text


class AutoReplyService:
    """Gates inbound messages and answers them with an AI provider.

    Each accepted message spawns a detached asyncio task that waits the
    configured delay, generates a reply with retries, and sends it back to
    the originating chat. At most ``max_concurrent`` generations run at once.
    """

    def __init__(
        self,
        transport: "Transport | None" = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        max_concurrent: int = 4,
        provider_factory: Callable[[AutoReplyConfig], ProviderClient] = create_provider,
    ) -> None:
        self._transport = transport
        self._session_factory = session_factory
        self._provider_factory = provider_factory
        self._config = AutoReplyConfig()
        self._lock = asyncio.Lock()
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._inflight: set[asyncio.Task[None]] = set()
        self._sleep = asyncio.sleep

    def set_transport(self, transport: "Transport") -> None:
        """Set the chat transport used to send replies."""
        self._transport = transport

    async def load_config(self) -> AutoReplyConfig:
        """Load the stored configuration, falling back to defaults."""
        config: AutoReplyConfig | None = None
        if self._session_factory is not None:
            try:
                async with get_session(self._session_factory) as session:
                    config = await AutoReplyConfigRepository(session).load()
            except Exception as e:
                logger.warning(f"Failed to load auto-reply config, using defaults: {e}")

        if config is None:
            config = AutoReplyConfig()
            logger.info("No stored auto-reply config, using defaults")

        async with self._lock:
            self._config = config
        logger.info(
            f"Auto-reply config loaded (enabled={config.enabled}, "
            f"provider={config.ai_provider.value})"
        )
        return config.snapshot()

    async def get_config(self) -> AutoReplyConfig:
        async with self._lock:
            return self._config.snapshot()

    async def update_config(self, config: AutoReplyConfig) -> AutoReplyConfig:
        """Persist and activate a new configuration.

        The store is written first; if that fails the error propagates and
        the previous configuration stays live.
        """
        new_config = config.snapshot()
        async with self._lock:
            if self._session_factory is not None:
                async with get_session(self._session_factory) as session:
                    await AutoReplyConfigRepository(session).save(new_config)
            self._config = new_config
        logger.info(
            f"Auto-reply config updated (enabled={new_config.enabled}, "
            f"provider={new_config.ai_provider.value}, "
            f"whitelist={len(new_config.whitelist_numbers)})"
        )
        return new_config.snapshot()

    async def is_whitelisted(self, sender_id: str) -> bool:
        """Whether ``sender_id`` is explicitly listed while auto-reply is on."""
        async with self._lock:
            config = self._config
            return config.enabled and sender_id in config.whitelist_numbers

    async def handle_message(self, message: InboundMessage) -> bool:
        """Gate an inbound message and schedule a reply if it qualifies.

        Returns immediately; generation happens in a detached task.

        Returns:
            True if a reply was scheduled.
        """
        config = await self.get_config()
        if not should_reply(message, config):
            return False

        task = asyncio.create_task(self._reply(message, config))
        self._inflight.add(task)
        task.add_done_callback(self._on_reply_done)
        logger.info(
            f"Scheduled auto-reply to {message.sender_id} in chat {message.chat_id} "
            f"(delay {config.response_delay}s)"
        )
        return True

    async def test_connection(self) -> str:
        """Run one generation against the configured provider.

        Provider errors propagate to the caller.
        """
        config = await self.get_config()
        provider = self._provider_factory(config)
        return await provider.generate(TEST_MESSAGE)

    async def stop(self) -> None:
        """Cancel in-flight reply generations."""
        tasks = list(self._inflight)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(f"Auto-reply service stopped ({len(tasks)} replies cancelled)")

    def _on_reply_done(self, task: "asyncio.Task[None]") -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Auto-reply task failed unexpectedly: {exc}", exc_info=exc)

    async def _reply(self, message: InboundMessage, config: AutoReplyConfig) -> None:
        if config.response_delay > 0:
            await self._sleep(config.response_delay)

        async with self._semaphore:
            text = await self._generate(extract_text(message), config)
            if text is None:
                return

            reply = shape_response(text, config.max_response_length)
            transport = self._transport
            if transport is None:
                logger.warning("No transport configured, dropping auto-reply")
                return
            try:
                await transport.send_message(message.chat_id, reply)
            except Exception as e:
                logger.error(f"Failed to send auto-reply to chat {message.chat_id}: {e}")
                return
            logger.info(f"Sent auto-reply to chat {message.chat_id}")

    async def _generate(self, prompt: str, config: AutoReplyConfig) -> str | None:
        provider = self._provider_factory(config)
        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                return await provider.generate(prompt)
            except Exception as e:
                if attempt == MAX_ATTEMPTS:
                    logger.error(
                        f"Giving up on auto-reply after {MAX_ATTEMPTS} attempts: {e}"
                    )
                    return None
                if isinstance(e, ProviderRateLimitedError):
                    wait = attempt * RATE_LIMIT_BACKOFF
                else:
                    wait = attempt * ERROR_BACKOFF
                logger.warning(
                    f"AI generation attempt {attempt}/{MAX_ATTEMPTS} failed: {e}; "
                    f"retrying in {wait}s"
                )
                await self._sleep(wait)
        return None
