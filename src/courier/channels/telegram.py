"""Telegram transport built on python-telegram-bot."""

import logging

from telegram import Message, Update
from telegram.constants import ChatType
from telegram.ext import Application, ContextTypes, MessageHandler, filters

from courier.channels.base import MessageCallback
from courier.errors import TransportDisconnectedError
from courier.models.messages import InboundMessage, MessageKind

logger = logging.getLogger(__name__)

# Telegram message limit is 4096 characters
MAX_MESSAGE_LENGTH = 4000


def classify_message(message: Message) -> tuple[MessageKind, str]:
    """Map a Telegram message to a message kind and its text."""
    if message.text is not None:
        if message.reply_to_message is not None or message.entities:
            return MessageKind.EXTENDED_TEXT, message.text
        return MessageKind.TEXT, message.text

    caption = message.caption or ""
    if message.photo:
        return MessageKind.IMAGE, caption
    if message.video or message.animation or message.video_note:
        return MessageKind.VIDEO, caption
    if message.audio or message.voice:
        return MessageKind.AUDIO, caption
    if message.document:
        return MessageKind.DOCUMENT, caption
    return MessageKind.OTHER, caption


class TelegramTransport:
    """Telegram bot implementing the Transport protocol.

    Every non-command message is turned into an ``InboundMessage``. When
    ``allowed_chat_ids`` is non-empty, inbound messages from other chats are
    dropped; outbound sends are not restricted.
    """

    def __init__(
        self,
        bot_token: str,
        allowed_chat_ids: list[int] | None = None,
    ) -> None:
        self._bot_token = bot_token
        self._allowed_chat_ids = set(allowed_chat_ids or [])
        self._app: Application | None = None
        self._bot_id: int | None = None
        self._running = False
        self._message_callback: MessageCallback | None = None

    @property
    def name(self) -> str:
        return "telegram"

    @property
    def is_connected(self) -> bool:
        return self._running and self._app is not None

    def on_message(self, callback: MessageCallback) -> None:
        """Register callback for incoming messages."""
        self._message_callback = callback

    async def start(self) -> None:
        """Start the Telegram bot in polling mode."""
        if self._running:
            return

        self._app = Application.builder().token(self._bot_token).build()
        self._app.add_handler(
            MessageHandler(filters.ALL & ~filters.COMMAND, self._handle_message)
        )

        await self._app.initialize()
        # Clear any stale polling sessions from previous runs
        await self._app.bot.delete_webhook(drop_pending_updates=True)
        await self._app.start()
        if self._app.updater:
            await self._app.updater.start_polling(drop_pending_updates=True)

        bot_info = await self._app.bot.get_me()
        self._bot_id = bot_info.id

        self._running = True
        logger.info(f"Telegram transport started (@{bot_info.username})")

    async def stop(self) -> None:
        """Stop the Telegram bot gracefully."""
        if not self._running or not self._app:
            return

        if self._app.updater:
            await self._app.updater.stop()
        await self._app.stop()
        await self._app.shutdown()

        self._running = False
        logger.info("Telegram transport stopped")

    async def send_message(self, recipient_id: str, text: str) -> str:
        """Send plain text to a chat and return the Telegram message ID."""
        if not self._app or not self._running:
            raise TransportDisconnectedError("Telegram transport is not running")

        if len(text) > MAX_MESSAGE_LENGTH:
            text = text[:MAX_MESSAGE_LENGTH] + "..."

        msg = await self._app.bot.send_message(chat_id=int(recipient_id), text=text)
        return str(msg.message_id)

    async def _handle_message(
        self,
        update: Update,
        context: ContextTypes.DEFAULT_TYPE,
    ) -> None:
        message = update.message
        if not message or not self._message_callback:
            return

        chat_id = message.chat_id
        if self._allowed_chat_ids and chat_id not in self._allowed_chat_ids:
            logger.debug(f"Ignoring message from chat {chat_id} (not in allowed list)")
            return

        kind, text = classify_message(message)
        user = message.from_user
        sender_id = user.id if user else chat_id
        inbound = InboundMessage(
            message_id=str(message.message_id),
            chat_id=str(chat_id),
            sender_id=str(sender_id),
            kind=kind,
            text=text,
            is_group=message.chat.type != ChatType.PRIVATE,
            is_from_me=user is not None and user.id == self._bot_id,
        )

        try:
            await self._message_callback(inbound)
        except Exception:
            logger.exception(f"Message callback failed for chat {chat_id}")
