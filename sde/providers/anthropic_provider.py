"""Anthropic provider (Claude models)."""

from __future__ import annotations

import os
import time

from .base import BaseProvider, LLMResponse


class AnthropicProvider(BaseProvider):
    """Provider for Anthropic Claude models.

    System text is a top-level parameter rather than a message role, and
    there is no JSON mode: JSON output relies on the prompt's format block.
    """

    def __init__(self) -> None:
        import anthropic

        self._client = anthropic.AsyncAnthropic(
            api_key=os.environ.get("ANTHROPIC_API_KEY"),
            max_retries=0,
        )

    async def complete(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        response_format: dict | None = None,
    ) -> LLMResponse:
        system_text = ""
        chat_messages = []
        for msg in messages:
            if msg["role"] == "system":
                system_text = msg["content"]
            else:
                chat_messages.append(msg)

        start = time.perf_counter()
        response = await self._client.messages.create(
            model=model,
            system=system_text,
            messages=chat_messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        elapsed_ms = (time.perf_counter() - start) * 1000

        content = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens,
            }

        return LLMResponse(
            content=content,
            model=response.model,
            usage=usage,
            latency_ms=elapsed_ms,
        )

    def supports_model(self, model: str) -> bool:
        return "claude" in model.lower()

    async def close(self) -> None:
        await self._client.close()
