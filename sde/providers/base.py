"""Abstract provider interface for LLM backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class LLMResponse:
    """Unified response from any provider."""

    content: str
    model: str
    usage: dict = field(default_factory=dict)  # {"prompt_tokens": N, "completion_tokens": M, "total_tokens": T}
    latency_ms: float = 0.0


class ProviderError(Exception):
    """A provider call failed. ``status_code`` is the HTTP status when known."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class BaseProvider(ABC):
    """Abstract interface all providers implement.

    ``messages`` use the chat roles ``system``, ``user`` and ``assistant``.
    """

    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        response_format: dict | None = None,
    ) -> LLMResponse:
        """Send a chat completion request. Returns unified LLMResponse."""
        ...

    @abstractmethod
    def supports_model(self, model: str) -> bool:
        """Whether this provider can serve the given model identifier."""
        ...

    async def close(self) -> None:
        """Cleanup async client resources. Override if needed."""
        pass
