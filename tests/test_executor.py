"""Tests for the execution adapter."""

from __future__ import annotations

import asyncio
import json

import pytest

from sde.errors import ExecutionError, ExecutionErrorKind
from sde.executor import PromptExecutor, classify_provider_exception, to_messages
from sde.models import Turn
from sde.prompts import ClosureClassification, ResponseOutput, closure_builders
from sde.prompts.base import Prompt
from sde.providers.base import LLMResponse, ProviderError
from sde.usage import CLASSIFICATION, RESPONSE_GENERATION


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _response_json(**overrides) -> str:
    data = {
        "thought_process": "plan",
        "response_message": "Let's look closer.",
        "concise_question": "What changed your mind?",
    }
    data.update(overrides)
    return json.dumps(data)


def _classifier_json(intent: str = "TR_CONFIRM_END", **overrides) -> str:
    data = {"thought_process": "agrees", "detected_intent": intent, "confidence_score": 0.9}
    data.update(overrides)
    return json.dumps(data)


class _RateLimitError(Exception):
    pass


class _HTTPError(Exception):
    def __init__(self, status_code: int):
        super().__init__(f"HTTP {status_code}")
        self.response = type("Resp", (), {"status_code": status_code})()


HISTORY = (Turn(role="model", text="Summary?"), Turn(role="user", text="Yes, that's right."))


# ---------------------------------------------------------------------------
# Successful calls
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_execute_generator_prompt(router, executor):
    router.queue(_response_json())
    prompt = closure_builders.summary.build(HISTORY, {"topic": "t"})

    result = await executor.execute(prompt)

    assert isinstance(result.data, ResponseOutput)
    assert result.data.concise_question == "What changed your mind?"
    assert result.usage.input_token_count == 100
    assert result.usage.total_token_count == 120

    call = router.calls[0]
    assert call["model"] == "test-generator"
    assert call["temperature"] == 0.7
    assert call["response_format"] == {"type": "json_object"}
    assert call["messages"][0]["role"] == "system"
    assert [m["role"] for m in call["messages"][1:]] == ["assistant", "user"]


@pytest.mark.asyncio
async def test_execute_classifier_prompt_uses_classifier_model(router, executor):
    router.queue(_classifier_json())
    prompt = closure_builders.classifier.build(HISTORY, {"generated_summary": "s", "user_input": "y"})

    result = await executor.execute(prompt)

    assert isinstance(result.data, ClosureClassification)
    assert router.calls[0]["model"] == "test-classifier"
    assert router.calls[0]["temperature"] == 0.1


@pytest.mark.asyncio
async def test_fenced_json_is_accepted(router, executor):
    router.queue(f"Here is my answer:\n```json\n{_response_json()}\n```")
    result = await executor.execute(closure_builders.summary.build(HISTORY))
    assert result.data.response_message == "Let's look closer."


@pytest.mark.asyncio
async def test_schema_less_prompt_returns_text(router, executor):
    router.queue("plain words")
    prompt = Prompt(system_instruction="Say something.", contents=(Turn(role="user", text="hi"),))

    result = await executor.execute(prompt)

    assert result.data == "plain words"
    assert router.calls[0]["response_format"] is None


def test_to_messages_maps_roles():
    prompt = Prompt(system_instruction="sys", contents=HISTORY)
    assert to_messages(prompt) == [
        {"role": "system", "content": "sys"},
        {"role": "assistant", "content": "Summary?"},
        {"role": "user", "content": "Yes, that's right."},
    ]


# ---------------------------------------------------------------------------
# Invalid output
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_intent_outside_stage_set_is_invalid_output(router, executor):
    router.queue(_classifier_json("TR_SCAFFOLD"))
    prompt = closure_builders.classifier.build(HISTORY)

    with pytest.raises(ExecutionError) as exc_info:
        await executor.execute(prompt)

    err = exc_info.value
    assert err.kind == ExecutionErrorKind.INVALID_OUTPUT
    assert not err.retryable
    # The failed call still consumed tokens
    assert err.usage.by_feature[CLASSIFICATION].total_token_count == 120


@pytest.mark.asyncio
async def test_two_questions_is_invalid_output(router, executor):
    router.queue(_response_json(concise_question="Why? And how?"))
    with pytest.raises(ExecutionError) as exc_info:
        await executor.execute(closure_builders.summary.build(HISTORY))
    assert exc_info.value.kind == ExecutionErrorKind.INVALID_OUTPUT
    assert RESPONSE_GENERATION in exc_info.value.usage.by_feature


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   ", "I refuse to answer in JSON.", '{"thought_process": "x"'])
async def test_unusable_text_is_invalid_output(router, executor, content):
    router.queue(content)
    with pytest.raises(ExecutionError) as exc_info:
        await executor.execute(closure_builders.summary.build(HISTORY))
    assert exc_info.value.kind == ExecutionErrorKind.INVALID_OUTPUT


# ---------------------------------------------------------------------------
# Provider failures
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_timeout(router, executor, hang):
    router.queue(hang)
    with pytest.raises(ExecutionError) as exc_info:
        await executor.execute(closure_builders.summary.build(HISTORY), timeout=0.05)
    assert exc_info.value.kind == ExecutionErrorKind.TIMEOUT
    assert exc_info.value.retryable
    assert exc_info.value.usage.is_empty


@pytest.mark.asyncio
async def test_quota_from_status_code(router, executor):
    router.queue(ProviderError("slow down", status_code=429))
    with pytest.raises(ExecutionError) as exc_info:
        await executor.execute(closure_builders.summary.build(HISTORY))
    assert exc_info.value.kind == ExecutionErrorKind.QUOTA_EXCEEDED


@pytest.mark.asyncio
async def test_other_provider_failure(router, executor):
    router.queue(ProviderError("boom", status_code=500))
    with pytest.raises(ExecutionError) as exc_info:
        await executor.execute(closure_builders.summary.build(HISTORY))
    assert exc_info.value.kind == ExecutionErrorKind.PROVIDER_ERROR
    assert "boom" in str(exc_info.value)


@pytest.mark.asyncio
async def test_no_retry_on_failure(router, executor):
    router.queue(ProviderError("boom", status_code=503), _response_json())
    with pytest.raises(ExecutionError):
        await executor.execute(closure_builders.summary.build(HISTORY))
    assert len(router.calls) == 1


@pytest.mark.asyncio
async def test_prompt_must_end_with_user_turn(router, executor):
    prompt = Prompt(system_instruction="s", contents=(Turn(role="model", text="Q?"),))
    with pytest.raises(ExecutionError):
        await executor.execute(prompt)
    assert router.calls == []


@pytest.mark.parametrize(
    "exc, kind",
    [
        (asyncio.TimeoutError(), ExecutionErrorKind.TIMEOUT),
        (type("ReadTimeout", (Exception,), {})(), ExecutionErrorKind.TIMEOUT),
        (_RateLimitError(), ExecutionErrorKind.QUOTA_EXCEEDED),
        (type("ResourceExhausted", (Exception,), {})(), ExecutionErrorKind.QUOTA_EXCEEDED),
        (_HTTPError(429), ExecutionErrorKind.QUOTA_EXCEEDED),
        (_HTTPError(500), ExecutionErrorKind.PROVIDER_ERROR),
        (ValueError("No provider found for model 'x'"), ExecutionErrorKind.PROVIDER_ERROR),
    ],
)
def test_classify_provider_exception(exc, kind):
    assert classify_provider_exception(exc) == kind


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_context_manager_leaves_injected_router_open(router):
    async with PromptExecutor(router=router) as executor:
        assert executor.router is router
    assert not router.closed


@pytest.mark.asyncio
async def test_context_manager_builds_router_from_env(monkeypatch):
    for var in ("GOOGLE_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY", "LOCAL_OPENAI_BASE_URL", "LOCAL_OPENAI_MODEL"):
        monkeypatch.delenv(var, raising=False)

    executor = PromptExecutor()
    async with executor:
        assert executor.router is not None
        assert executor.router.available_providers == []
    assert executor.router is None


@pytest.mark.asyncio
async def test_execute_requires_router():
    with pytest.raises(AssertionError, match="not initialized"):
        await PromptExecutor().execute(closure_builders.summary.build(HISTORY))


@pytest.mark.asyncio
async def test_raw_llm_response_usage_is_normalised(router, executor):
    router.queue(
        LLMResponse(
            content=_response_json(),
            model="test-generator",
            usage={"prompt_tokens": 8, "completion_tokens": 4},
        )
    )
    result = await executor.execute(closure_builders.summary.build(HISTORY))
    assert result.usage.total_token_count == 12
