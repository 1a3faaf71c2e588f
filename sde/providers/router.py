"""Model router: maps model identifiers to providers.

Only initializes providers for which credentials are available.
"""

from __future__ import annotations

import logging
import os

from .base import BaseProvider, LLMResponse

logger = logging.getLogger(__name__)


class ModelRouter:
    """Routes model strings to the provider that serves them."""

    def __init__(self) -> None:
        self._providers: dict[str, BaseProvider] = {}
        self._init_providers()

    def _init_providers(self) -> None:
        """Initialize only providers with available credentials."""
        if os.environ.get("GOOGLE_API_KEY"):
            from .google_provider import GoogleProvider

            self._providers["google"] = GoogleProvider()

        if os.environ.get("OPENAI_API_KEY"):
            from .openai_provider import OpenAIProvider

            self._providers["openai"] = OpenAIProvider()

        if os.environ.get("ANTHROPIC_API_KEY"):
            from .anthropic_provider import AnthropicProvider

            self._providers["anthropic"] = AnthropicProvider()

        # Local OpenAI-compatible server (vLLM, LM Studio, Ollama)
        if os.environ.get("LOCAL_OPENAI_BASE_URL") or os.environ.get("LOCAL_OPENAI_MODEL"):
            from .local_openai_provider import LocalOpenAIProvider

            self._providers["local"] = LocalOpenAIProvider()

        logger.debug("Initialized providers: %s", list(self._providers))

    def get_provider(self, model: str) -> BaseProvider:
        """Find the provider that supports the given model identifier."""
        for provider in self._providers.values():
            if provider.supports_model(model):
                return provider
        available = list(self._providers.keys())
        raise ValueError(
            f"No provider found for model '{model}'. "
            f"Available providers: {available}"
        )

    async def complete(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        response_format: dict | None = None,
    ) -> LLMResponse:
        """Route a completion request to the appropriate provider."""
        provider = self.get_provider(model)
        return await provider.complete(
            messages=messages,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            response_format=response_format,
        )

    @property
    def available_providers(self) -> list[str]:
        """List of initialized provider names."""
        return list(self._providers.keys())

    async def close(self) -> None:
        """Close all provider clients."""
        for provider in self._providers.values():
            await provider.close()
