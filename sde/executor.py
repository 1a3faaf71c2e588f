"""Execution adapter: runs a structured prompt against a language model.

Everything provider-specific stays behind this module: chat-message
conversion, JSON mode, deadlines, error classification and schema
validation of the output. Calls are never retried here.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError

from .errors import ExecutionError, ExecutionErrorKind
from .models import ModelConfig
from .prompts.base import CLASSIFIER, Prompt
from .providers.router import ModelRouter
from .usage import CLASSIFICATION, RESPONSE_GENERATION, TokenUsage, TokenUsageReport
from .utils.extraction import extract_json_block

logger = logging.getLogger(__name__)

JSON_RESPONSE_FORMAT = {"type": "json_object"}


@dataclass(frozen=True)
class ExecutionResult:
    """A validated model response and what it cost."""

    data: Any  # schema instance, or str for schema-less prompts
    usage: TokenUsage
    model: str = ""
    latency_ms: float = 0.0


def feature_for(prompt: Prompt) -> str:
    """Usage-report feature a prompt's call is billed under."""
    return CLASSIFICATION if prompt.role == CLASSIFIER else RESPONSE_GENERATION


def to_messages(prompt: Prompt) -> list[dict[str, str]]:
    """Convert a Prompt into provider chat messages."""
    messages = [{"role": "system", "content": prompt.system_instruction}]
    for turn in prompt.contents:
        role = "assistant" if turn.role == "model" else "user"
        messages.append({"role": role, "content": turn.text})
    return messages


def classify_provider_exception(exc: BaseException) -> ExecutionErrorKind:
    """Map a provider/SDK exception onto the execution error taxonomy.

    Works from the exception's HTTP status (``status_code``,
    ``response.status_code`` or an integer ``code``) and type name, so no
    provider SDK has to be importable here.
    """
    name = type(exc).__name__
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)) or "Timeout" in name:
        return ExecutionErrorKind.TIMEOUT

    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(getattr(exc, "response", None), "status_code", None)
    if status is None:
        code = getattr(exc, "code", None)
        if isinstance(code, int):
            status = code

    if status == 429 or "RateLimit" in name or "ResourceExhausted" in name:
        return ExecutionErrorKind.QUOTA_EXCEEDED
    return ExecutionErrorKind.PROVIDER_ERROR


class PromptExecutor:
    """Executes prompts via the model router and validates their output.

    Usage:
        async with PromptExecutor(config=ModelConfig.from_env()) as executor:
            result = await executor.execute(prompt)
    """

    def __init__(
        self,
        router: ModelRouter | None = None,
        config: ModelConfig | None = None,
    ) -> None:
        self.config = config or ModelConfig()
        self.router = router
        self._owns_router = False

    async def __aenter__(self) -> PromptExecutor:
        if self.router is None:
            self.router = ModelRouter()
            self._owns_router = True
            logger.info("Executor initialized with providers: %s", self.router.available_providers)
        return self

    async def __aexit__(self, *exc: object) -> None:
        if self.router and self._owns_router:
            await self.router.close()
            self.router = None
            self._owns_router = False

    async def execute(self, prompt: Prompt, timeout: Optional[float] = None) -> ExecutionResult:
        """Run one model call and return its validated result.

        ``timeout`` (seconds) overrides the configured per-call deadline.
        Raises ExecutionError on timeout, quota exhaustion, provider failure
        or output that does not satisfy ``prompt.schema``.
        """
        assert self.router is not None, "Executor not initialized. Use 'async with' or pass a router."

        if not prompt.contents or prompt.contents[-1].role != "user":
            raise ExecutionError(
                ExecutionErrorKind.PROVIDER_ERROR,
                "last turn of a request must come from the user",
            )

        feature = feature_for(prompt)
        if prompt.role == CLASSIFIER:
            model, temperature = self.config.classifier_model, self.config.classifier_temperature
        else:
            model, temperature = self.config.generator_model, self.config.generator_temperature
        deadline = timeout if timeout is not None else self.config.request_timeout_s

        try:
            response = await asyncio.wait_for(
                self.router.complete(
                    messages=to_messages(prompt),
                    model=model,
                    temperature=temperature,
                    max_tokens=self.config.max_tokens,
                    response_format=JSON_RESPONSE_FORMAT if prompt.schema is not None else None,
                ),
                timeout=deadline,
            )
        except asyncio.TimeoutError as e:
            logger.warning("%s call to %s timed out after %.1fs", feature, model, deadline)
            raise ExecutionError(
                ExecutionErrorKind.TIMEOUT, f"{model} did not answer within {deadline}s"
            ) from e
        except ExecutionError:
            raise
        except Exception as e:
            kind = classify_provider_exception(e)
            logger.warning("%s call to %s failed (%s): %s", feature, model, kind.value, e)
            raise ExecutionError(kind, str(e)) from e

        usage = TokenUsage.from_provider_usage(response.usage)
        data = self._decode(prompt, response.content, feature, usage)

        logger.debug(
            "%s call to %s: %d tokens in %.0fms",
            feature,
            response.model,
            usage.total_token_count,
            response.latency_ms,
        )
        return ExecutionResult(
            data=data,
            usage=usage,
            model=response.model,
            latency_ms=response.latency_ms,
        )

    def _decode(self, prompt: Prompt, content: str, feature: str, usage: TokenUsage) -> Any:
        """Validate raw model text against the prompt's schema."""

        def invalid(reason: str) -> ExecutionError:
            logger.warning("Invalid %s output: %s", feature, reason)
            return ExecutionError(
                ExecutionErrorKind.INVALID_OUTPUT,
                reason,
                usage=TokenUsageReport.single(feature, usage),
            )

        if not content or not content.strip():
            raise invalid("empty response from model")

        if prompt.schema is None:
            return content

        json_str = extract_json_block(content)
        if json_str is None:
            raise invalid("no JSON object in response")
        try:
            return prompt.schema.model_validate_json(json_str)
        except ValidationError as e:
            raise invalid(f"{prompt.schema.__name__} validation failed: {e.errors()[0]['msg']}") from e
