"""Auto-reply configuration repository."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from courier.db.models import AutoReplyConfigModel, WhitelistEntryModel
from courier.models.auto_reply import AIProvider, AutoReplyConfig

CONFIG_ROW_ID = 1


class AutoReplyConfigRepository:
    """Whole-object load/save of the auto-reply configuration."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load(self) -> AutoReplyConfig | None:
        """Load the stored configuration.

        Returns:
            The stored AutoReplyConfig, or None if nothing was saved yet.
        """
        model = await self.session.get(AutoReplyConfigModel, CONFIG_ROW_ID)
        if model is None:
            return None

        result = await self.session.execute(
            select(WhitelistEntryModel.number).order_by(WhitelistEntryModel.number)
        )
        return AutoReplyConfig(
            enabled=model.enabled,
            ai_provider=AIProvider(model.ai_provider),
            openai_api_key=model.openai_api_key,
            openai_model=model.openai_model,
            openai_base_url=model.openai_base_url,
            ollama_url=model.ollama_url,
            ollama_model=model.ollama_model,
            whitelist_numbers=list(result.scalars().all()),
            system_prompt=model.system_prompt,
            response_delay=model.response_delay,
            max_response_length=model.max_response_length,
        )

    async def save(self, config: AutoReplyConfig) -> None:
        """Replace the stored configuration, whitelist included."""
        await self.session.execute(delete(WhitelistEntryModel))
        self.session.add_all(
            WhitelistEntryModel(number=number) for number in config.whitelist_numbers
        )

        model = await self.session.get(AutoReplyConfigModel, CONFIG_ROW_ID)
        if model is None:
            model = AutoReplyConfigModel(id=CONFIG_ROW_ID)
            self.session.add(model)

        model.enabled = config.enabled
        model.ai_provider = config.ai_provider.value
        model.openai_api_key = config.openai_api_key
        model.openai_model = config.openai_model
        model.openai_base_url = config.openai_base_url
        model.ollama_url = config.ollama_url
        model.ollama_model = config.ollama_model
        model.system_prompt = config.system_prompt
        model.response_delay = config.response_delay
        model.max_response_length = config.max_response_length
        await self.session.flush()
