"""Auto-reply configuration model."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class AIProvider(str, Enum):
    OPENAI = "openai"  # Hosted chat completion API
    OLLAMA = "ollama"  # Locally hosted completion API


DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful WhatsApp assistant. Keep responses concise and friendly."
)


class AutoReplyConfig(BaseModel):
    """Runtime configuration for AI-generated replies.

    Replaced as a whole on update; each reply attempt works on its own copy.
    """

    enabled: bool = False
    ai_provider: AIProvider = AIProvider.OPENAI
    openai_api_key: str = ""
    openai_model: str = "gpt-3.5-turbo"
    openai_base_url: str = "https://api.openai.com/v1"
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "llama2"
    whitelist_numbers: list[str] = []
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    response_delay: int = Field(default=2, ge=0)  # seconds
    max_response_length: int = Field(default=500, ge=1)  # characters

    @field_validator("whitelist_numbers")
    @classmethod
    def _dedupe_whitelist(cls, value: list[str]) -> list[str]:
        seen: dict[str, None] = {}
        for number in value:
            number = number.strip()
            if number:
                seen.setdefault(number, None)
        return list(seen)

    def snapshot(self) -> "AutoReplyConfig":
        return self.model_copy(deep=True)
