"""Inbound chat message event delivered by a transport."""

from dataclasses import dataclass
from enum import Enum


class MessageKind(str, Enum):
    TEXT = "text"
    EXTENDED_TEXT = "extended_text"  # Quoted / formatted text
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    OTHER = "other"


@dataclass
class InboundMessage:
    message_id: str
    chat_id: str  # Where a reply goes
    sender_id: str  # Matched against the whitelist
    kind: MessageKind = MessageKind.TEXT
    text: str = ""
    is_group: bool = False
    is_from_me: bool = False
