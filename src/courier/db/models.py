"""SQLAlchemy ORM models for Courier."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AutoReplyConfigModel(Base):
    """Single-row table holding the auto-reply configuration."""

    __tablename__ = "auto_reply_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    ai_provider: Mapped[str] = mapped_column(String(32), nullable=False)
    openai_api_key: Mapped[str] = mapped_column(Text, nullable=False, default="")
    openai_model: Mapped[str] = mapped_column(String(255), nullable=False)
    openai_base_url: Mapped[str] = mapped_column(Text, nullable=False)
    ollama_url: Mapped[str] = mapped_column(Text, nullable=False)
    ollama_model: Mapped[str] = mapped_column(String(255), nullable=False)
    system_prompt: Mapped[str] = mapped_column(Text, nullable=False)
    response_delay: Mapped[int] = mapped_column(Integer, nullable=False)
    max_response_length: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )


class WhitelistEntryModel(Base):
    """Sender identifier eligible for auto-reply."""

    __tablename__ = "auto_reply_whitelist"

    number: Mapped[str] = mapped_column(String(255), primary_key=True)
