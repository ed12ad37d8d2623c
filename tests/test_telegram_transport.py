"""Tests for TelegramTransport: update mapping and sending."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from courier.channels.telegram import TelegramTransport, classify_message
from courier.errors import TransportDisconnectedError
from courier.models import InboundMessage, MessageKind

BOT_ID = 42


def _make_message(
    chat_id: int = 111,
    user_id: int | None = 1555,
    chat_type: str = "private",
    **content,
):
    """Create a mock telegram Message with no content besides ``content``."""
    message = MagicMock()
    message.message_id = 7
    message.chat_id = chat_id
    message.chat.type = chat_type
    if user_id is None:
        message.from_user = None
    else:
        message.from_user.id = user_id

    for attr in ("text", "caption", "reply_to_message"):
        setattr(message, attr, None)
    for attr in ("entities", "photo"):
        setattr(message, attr, ())
    for attr in ("video", "animation", "video_note", "audio", "voice", "document"):
        setattr(message, attr, None)
    for attr, value in content.items():
        setattr(message, attr, value)
    return message


def _make_update(message):
    update = MagicMock()
    update.message = message
    return update


@pytest.fixture
def transport():
    """Create a TelegramTransport with mocked internals."""
    t = TelegramTransport(bot_token="test-token", allowed_chat_ids=[111, 222])
    t._bot_id = BOT_ID
    t._running = True
    app = MagicMock()
    app.bot = MagicMock()
    app.bot.send_message = AsyncMock(return_value=MagicMock(message_id=99))
    t._app = app
    return t


class TestClassifyMessage:
    def test_plain_text(self):
        assert classify_message(_make_message(text="hi")) == (MessageKind.TEXT, "hi")

    def test_reply_is_extended_text(self):
        message = _make_message(text="sure", reply_to_message=MagicMock())
        assert classify_message(message) == (MessageKind.EXTENDED_TEXT, "sure")

    def test_formatted_is_extended_text(self):
        message = _make_message(text="**bold**", entities=(MagicMock(),))
        assert classify_message(message)[0] == MessageKind.EXTENDED_TEXT

    @pytest.mark.parametrize(
        "attr,value,kind",
        [
            ("photo", (MagicMock(),), MessageKind.IMAGE),
            ("video", MagicMock(), MessageKind.VIDEO),
            ("animation", MagicMock(), MessageKind.VIDEO),
            ("video_note", MagicMock(), MessageKind.VIDEO),
            ("audio", MagicMock(), MessageKind.AUDIO),
            ("voice", MagicMock(), MessageKind.AUDIO),
            ("document", MagicMock(), MessageKind.DOCUMENT),
        ],
    )
    def test_media_kinds(self, attr, value, kind):
        message = _make_message(caption="look", **{attr: value})
        assert classify_message(message) == (kind, "look")

    def test_other(self):
        assert classify_message(_make_message()) == (MessageKind.OTHER, "")


class TestHandleMessage:
    async def test_private_message_delivered(self, transport):
        callback = AsyncMock()
        transport.on_message(callback)

        await transport._handle_message(_make_update(_make_message(text="hello")), MagicMock())

        callback.assert_awaited_once_with(
            InboundMessage(
                message_id="7",
                chat_id="111",
                sender_id="1555",
                kind=MessageKind.TEXT,
                text="hello",
                is_group=False,
                is_from_me=False,
            )
        )

    async def test_group_flag(self, transport):
        callback = AsyncMock()
        transport.on_message(callback)

        message = _make_message(text="hello", chat_type="supergroup")
        await transport._handle_message(_make_update(message), MagicMock())

        assert callback.await_args.args[0].is_group is True

    async def test_own_message_flagged(self, transport):
        callback = AsyncMock()
        transport.on_message(callback)

        message = _make_message(text="hello", user_id=BOT_ID)
        await transport._handle_message(_make_update(message), MagicMock())

        assert callback.await_args.args[0].is_from_me is True

    async def test_sender_falls_back_to_chat(self, transport):
        callback = AsyncMock()
        transport.on_message(callback)

        message = _make_message(text="news", user_id=None)
        await transport._handle_message(_make_update(message), MagicMock())

        assert callback.await_args.args[0].sender_id == "111"

    async def test_disallowed_chat_is_ignored(self, transport):
        callback = AsyncMock()
        transport.on_message(callback)

        message = _make_message(chat_id=999, text="hello")
        await transport._handle_message(_make_update(message), MagicMock())

        callback.assert_not_awaited()

    async def test_no_allow_list_accepts_all(self):
        t = TelegramTransport(bot_token="test-token")
        callback = AsyncMock()
        t.on_message(callback)

        message = _make_message(chat_id=999, text="hello")
        await t._handle_message(_make_update(message), MagicMock())

        callback.assert_awaited_once()

    async def test_callback_error_is_contained(self, transport):
        transport.on_message(AsyncMock(side_effect=RuntimeError("boom")))

        await transport._handle_message(_make_update(_make_message(text="hello")), MagicMock())


class TestSendMessage:
    async def test_send(self, transport):
        message_id = await transport.send_message("111", "Hello")

        assert message_id == "99"
        transport._app.bot.send_message.assert_awaited_once_with(chat_id=111, text="Hello")

    async def test_long_message_truncated(self, transport):
        await transport.send_message("111", "x" * 5000)

        sent = transport._app.bot.send_message.await_args.kwargs["text"]
        assert len(sent) == 4003
        assert sent.endswith("...")

    async def test_not_running_raises(self, transport):
        transport._running = False
        assert transport.is_connected is False

        with pytest.raises(TransportDisconnectedError):
            await transport.send_message("111", "Hello")

    async def test_send_errors_propagate(self, transport):
        transport._app.bot.send_message = AsyncMock(side_effect=RuntimeError("forbidden"))
        with pytest.raises(RuntimeError):
            await transport.send_message("111", "Hello")

    def test_name(self, transport):
        assert transport.name == "telegram"
        assert transport.is_connected is True
