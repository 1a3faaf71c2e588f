"""LLM provider backends, isolated behind the execution adapter."""

from .base import BaseProvider, LLMResponse, ProviderError
from .router import ModelRouter

__all__ = ["BaseProvider", "LLMResponse", "ModelRouter", "ProviderError"]
