"""AI completion providers used to compose auto-replies."""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from courier.errors import (
    ProviderBadResponseError,
    ProviderError,
    ProviderRateLimitedError,
    ProviderUnauthorizedError,
    ProviderUnavailableError,
)
from courier.models.auto_reply import AIProvider, AutoReplyConfig

logger = logging.getLogger(__name__)


class ProviderClient(ABC):
    """One AI completion backend, bound to a config snapshot."""

    timeout: float = 30.0

    def __init__(
        self,
        config: AutoReplyConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._client = client

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Return completion text for the user's message."""

    async def _post(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        logger.debug(f"POST {url} (timeout {self.timeout}s)")
        try:
            if self._client is not None:
                return await self._client.post(
                    url, json=payload, headers=headers, timeout=self.timeout
                )
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise ProviderUnavailableError(
                f"network error: {e.__class__.__name__}: {e}"
            ) from e


class HostedProvider(ProviderClient):
    """OpenAI-style chat completions endpoint with bearer auth."""

    timeout = 30.0

    async def generate(self, prompt: str) -> str:
        config = self._config
        if not config.openai_api_key:
            raise ProviderUnauthorizedError("OpenAI API key not configured")

        payload: dict[str, Any] = {
            "model": config.openai_model,
            "messages": [
                {"role": "system", "content": config.system_prompt},
                {"role": "user", "content": prompt},
            ],
        }
        # Rough estimate of four characters per token
        max_tokens = config.max_response_length // 4
        if max_tokens > 0:
            payload["max_tokens"] = max_tokens

        url = config.openai_base_url.rstrip("/") + "/chat/completions"
        response = await self._post(
            url,
            payload,
            headers={"Authorization": f"Bearer {config.openai_api_key}"},
        )

        status = response.status_code
        if status == 401:
            raise ProviderUnauthorizedError("invalid API key", status_code=status)
        if status == 429:
            raise ProviderRateLimitedError(
                "rate limit exceeded, please try again later", status_code=status
            )
        if status in (500, 502, 503):
            raise ProviderUnavailableError(
                "OpenAI service temporarily unavailable", status_code=status
            )
        if status != 200:
            raise ProviderError(
                f"OpenAI API error (status {status}): {response.text}",
                status_code=status,
                body=response.text,
            )

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except ValueError as e:
            raise ProviderBadResponseError(f"failed to parse response: {e}") from e
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderBadResponseError(
                "no response choices returned from OpenAI"
            ) from e

        if not isinstance(content, str) or not content.strip():
            raise ProviderBadResponseError("empty response from OpenAI")
        return content


class LocalProvider(ProviderClient):
    """Ollama-style generate endpoint, non-streaming."""

    # Local models may run on constrained hardware
    timeout = 60.0

    async def generate(self, prompt: str) -> str:
        config = self._config
        if not config.ollama_url:
            raise ProviderUnavailableError("Ollama URL not configured")

        payload = {
            "model": config.ollama_model,
            "prompt": f"{config.system_prompt}\n\nUser: {prompt}\nAssistant:",
            "stream": False,
        }
        url = config.ollama_url.rstrip("/") + "/api/generate"
        response = await self._post(url, payload)

        status = response.status_code
        if status == 404:
            raise ProviderUnavailableError(
                f"model '{config.ollama_model}' not found in Ollama",
                status_code=status,
            )
        if status == 429:
            raise ProviderRateLimitedError("Ollama rate limit exceeded", status_code=status)
        if status in (500, 503):
            raise ProviderUnavailableError(
                f"Ollama service unavailable (status {status})",
                status_code=status,
                body=response.text,
            )
        if status != 200:
            raise ProviderError(
                f"Ollama API error (status {status}): {response.text}",
                status_code=status,
                body=response.text,
            )

        try:
            text = response.json().get("response", "")
        except (ValueError, AttributeError) as e:
            raise ProviderBadResponseError(f"failed to parse response: {e}") from e

        if not isinstance(text, str) or not text.strip():
            raise ProviderBadResponseError("empty response from Ollama")
        return text


def create_provider(
    config: AutoReplyConfig,
    client: httpx.AsyncClient | None = None,
) -> ProviderClient:
    """Build the provider selected by ``config.ai_provider``."""
    if config.ai_provider == AIProvider.OPENAI:
        return HostedProvider(config, client)
    if config.ai_provider == AIProvider.OLLAMA:
        return LocalProvider(config, client)
    raise ValueError(f"unsupported AI provider: {config.ai_provider}")
