from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Database settings
    database_url: str = "sqlite+aiosqlite:///courier.db"
    db_echo: bool = False

    # Scheduler settings
    timezone: str | None = None  # IANA zone name; None = host local time
    execution_history_size: int = 200  # Recent task executions kept in memory

    # Auto-reply settings
    max_concurrent_replies: int = 4  # Bound on in-flight reply generations

    # Telegram transport
    telegram_bot_token: str | None = None
    telegram_allowed_chat_ids: list[int] = []

    model_config = SettingsConfigDict(env_prefix="COURIER_")
