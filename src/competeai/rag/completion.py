"""Completion client for hosted chat models.

All providers speak the OpenAI-compatible chat completions API; only the
base URL, model and rate table differ.
"""

import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from competeai.config import CompletionProvider, Settings, get_provider_config
from competeai.exceptions import (
    CompletionFailed,
    ConfigurationMissingError,
    ProviderCallError,
)
from competeai.models.rag import CompletionResult, TokenUsage
from competeai.utils import call_with_timeout

logger = logging.getLogger(__name__)

EMPTY_COMPLETION = "Generation failed"


class CompletionClient:
    """Calls a hosted completion model and prices the call."""

    def __init__(
        self,
        settings: Settings,
        provider: Optional[CompletionProvider | str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        """Initialize the completion client.

        Args:
            settings: Application settings (credentials, timeout)
            provider: Provider to use (defaults to settings.completion_provider)
            client: Pre-built OpenAI-compatible client; created lazily when omitted
        """
        self.config = get_provider_config(provider or settings.completion_provider)
        self.model = self.config.model
        self.timeout = settings.provider_timeout_seconds
        self._api_key = self.config.api_key(settings)
        self._client = client

    @property
    def provider_name(self) -> str:
        return self.config.name

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(self._api_key)

    def ensure_configured(self) -> None:
        if not self.is_configured:
            raise ConfigurationMissingError(
                self.config.api_key_setting, f"{self.config.name} API key not configured"
            )

    @property
    def client(self) -> AsyncOpenAI:
        self.ensure_configured()
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, base_url=self.config.base_url)
        return self._client

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 200,
    ) -> CompletionResult:
        """Run one chat completion.

        Args:
            system_prompt: System instruction
            user_prompt: User message
            temperature: Sampling temperature
            max_tokens: Output token budget

        Returns:
            CompletionResult with text, model, token usage and estimated cost

        Raises:
            ConfigurationMissingError: If the provider credential is absent
            CompletionFailed: If the provider call fails
            ProviderTimeoutError: If the provider does not answer in time
        """
        try:
            response = await call_with_timeout(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    temperature=temperature,
                    max_tokens=max_tokens,
                ),
                self.timeout,
                self.config.name,
            )
        except ProviderCallError:
            raise
        except OpenAIError as e:
            raise CompletionFailed(self.config.name, str(e)) from e

        text = EMPTY_COMPLETION
        if response.choices and response.choices[0].message.content:
            text = response.choices[0].message.content

        usage = TokenUsage(
            input=response.usage.prompt_tokens if response.usage else 0,
            output=response.usage.completion_tokens if response.usage else 0,
        )
        cost = self.config.estimate_cost(usage.input, usage.output)

        logger.debug(
            f"Completion from {self.model}: {usage.input} in / {usage.output} out, ${cost:.6f}"
        )

        return CompletionResult(
            text=text,
            model=self.model,
            provider=self.config.name,
            usage=usage,
            estimated_cost=cost,
        )
