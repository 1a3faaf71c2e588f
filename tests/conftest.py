"""Shared test fixtures."""

from __future__ import annotations

import asyncio

import pytest

from sde.executor import PromptExecutor
from sde.models import ModelConfig, OrchestratorConfig
from sde.orchestrator import DialogueOrchestrator
from sde.providers.base import LLMResponse

# Queue this to make a call hang until its deadline expires
HANG = object()


class ScriptedRouter:
    """Stand-in for ModelRouter that replays queued responses in order.

    Items may be raw response text, an LLMResponse, an exception to raise,
    or HANG. Every call is recorded in ``calls``.
    """

    available_providers = ["scripted"]

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[dict] = []
        self.closed = False

    def queue(self, *responses) -> None:
        self.responses.extend(responses)

    async def complete(self, messages, model, temperature=0.7, max_tokens=4096, response_format=None):
        self.calls.append(
            {
                "messages": messages,
                "model": model,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "response_format": response_format,
            }
        )
        if not self.responses:
            raise AssertionError("unexpected model call")
        item = self.responses.pop(0)
        if item is HANG:
            await asyncio.sleep(60)
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, LLMResponse):
            return item
        return LLMResponse(
            content=item,
            model=model,
            usage={"prompt_tokens": 100, "completion_tokens": 20, "total_tokens": 120},
            latency_ms=5.0,
        )

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def router():
    return ScriptedRouter()


@pytest.fixture
def model_config():
    return ModelConfig(classifier_model="test-classifier", generator_model="test-generator")


@pytest.fixture
def executor(router, model_config):
    return PromptExecutor(router=router, config=model_config)


@pytest.fixture
def orchestrator(executor):
    return DialogueOrchestrator(executor, OrchestratorConfig(max_loops=5, min_loops_for_closure=1))


@pytest.fixture
def hang():
    return HANG
