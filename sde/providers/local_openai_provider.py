"""Local OpenAI-compatible provider.

Talks to any server exposing ``/v1/chat/completions`` (vLLM, LM Studio,
Ollama). Useful for running dialogues against a local model during
development.
"""

from __future__ import annotations

import os
import time

import httpx

from .base import BaseProvider, LLMResponse, ProviderError


class LocalOpenAIProvider(BaseProvider):
    """Provider for OpenAI-compatible local inference servers.

    Environment variables:
        LOCAL_OPENAI_BASE_URL: Server base URL (default: http://localhost:8000/v1)
        LOCAL_OPENAI_MODEL: Default model name (default: "default")
        LOCAL_OPENAI_API_KEY: Optional API key for the server
        LOCAL_OPENAI_TIMEOUT: Request timeout in seconds (default: 300)
    """

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
    ) -> None:
        self.base_url = (
            base_url
            or os.environ.get("LOCAL_OPENAI_BASE_URL", "http://localhost:8000/v1")
        )
        self.default_model = model or os.environ.get("LOCAL_OPENAI_MODEL", "default")
        self._api_key = os.environ.get("LOCAL_OPENAI_API_KEY")
        self._timeout = int(os.environ.get("LOCAL_OPENAI_TIMEOUT", "300"))

    async def complete(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        response_format: dict | None = None,
    ) -> LLMResponse:
        chosen_model = model if model != "local" else self.default_model
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        payload: dict = {
            "model": chosen_model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if response_format:
            payload["response_format"] = response_format

        url = f"{self.base_url}/chat/completions"

        start = time.perf_counter()
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            resp = await client.post(url, headers=headers, json=payload)
            if resp.status_code >= 400:
                raise ProviderError(
                    f"Local server error {resp.status_code}: {resp.text[:500]}",
                    status_code=resp.status_code,
                )
            data = resp.json()
        elapsed_ms = (time.perf_counter() - start) * 1000

        content = (
            (data.get("choices") or [{}])[0]
            .get("message", {})
            .get("content", "")
        )
        usage_data = data.get("usage") or {}
        usage = {
            "prompt_tokens": usage_data.get("prompt_tokens", 0),
            "completion_tokens": usage_data.get("completion_tokens", 0),
            "total_tokens": usage_data.get("total_tokens", 0),
        }

        return LLMResponse(
            content=content or "",
            model=data.get("model", chosen_model),
            usage=usage,
            latency_ms=elapsed_ms,
        )

    def supports_model(self, model: str) -> bool:
        if not model:
            return False

        model_lower = model.lower()
        if model_lower == "local" or model_lower == self.default_model.lower():
            return True

        # Leave hosted model families to their own providers
        if any(
            prefix in model_lower
            for prefix in ("gpt", "o1", "o3", "o4", "claude", "gemini")
        ):
            return False

        # Local backends and HF-style repo ids, e.g. Qwen/Qwen3-8B
        return "vllm" in model_lower or "mlx" in model_lower or "/" in model
