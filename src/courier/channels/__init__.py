from .base import MessageCallback, Transport
from .telegram import TelegramTransport

__all__ = [
    "MessageCallback",
    "Transport",
    "TelegramTransport",
]
