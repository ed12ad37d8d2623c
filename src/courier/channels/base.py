"""Transport protocol: the interface a chat transport must implement."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol

from courier.models.messages import InboundMessage

MessageCallback = Callable[[InboundMessage], Awaitable[Any]]


class Transport(Protocol):
    """Interface for chat transports (Telegram, WhatsApp, ...)."""

    @property
    def name(self) -> str:
        """Transport identifier (e.g., 'telegram')."""
        ...

    @property
    def is_connected(self) -> bool:
        """Whether messages can be sent right now."""
        ...

    async def start(self) -> None:
        """Connect and begin receiving messages."""
        ...

    async def stop(self) -> None:
        """Graceful shutdown."""
        ...

    async def send_message(self, recipient_id: str, text: str) -> str:
        """Send a text message and return its message ID.

        Raises TransportDisconnectedError when not connected.
        """
        ...

    def on_message(self, callback: MessageCallback) -> None:
        """Register callback for inbound messages."""
        ...
