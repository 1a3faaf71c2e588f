"""Shared machinery for stage handlers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Optional

from ..errors import ConfigurationError, ExecutionError, SessionStateError
from ..executor import feature_for
from ..models import (
    DialogueStage,
    DialogueState,
    OrchestratorConfig,
    StageResult,
    StanceVersion,
)
from ..usage import TokenUsageReport

if TYPE_CHECKING:
    from ..executor import PromptExecutor
    from ..prompts.base import PromptBuilder
    from ..prompts.schemas import ClassifierOutput, ResponseOutput

logger = logging.getLogger(__name__)

# One classifier call plus at most one response-generator call
MAX_CALLS_PER_TURN = 2


def format_stage_response(response: ResponseOutput) -> str:
    """Join the response body and its follow-up question with a blank line."""
    return f"{response.response_message}\n\n{response.concise_question}"


@dataclass
class StageContext:
    """Everything a handler needs for one invocation.

    The context also meters the invocation: it counts model calls, enforces
    the per-turn call limit and folds every call's usage into ``usage``.
    When a call fails, the usage of the calls that already completed is
    merged into the raised ExecutionError.
    """

    executor: PromptExecutor
    state: DialogueState
    config: OrchestratorConfig
    student_message: str = ""
    topic_context: str = ""
    timeout: Optional[float] = None
    usage: TokenUsageReport = field(default_factory=TokenUsageReport.empty)
    calls: int = 0

    async def run(self, builder: PromptBuilder, **inputs: Any) -> Any:
        """Build a prompt from the current history and execute it."""
        if self.calls >= MAX_CALLS_PER_TURN:
            raise ConfigurationError(
                ConfigurationError.CALL_LIMIT_EXCEEDED,
                f"a turn may make at most {MAX_CALLS_PER_TURN} model calls",
            )
        prompt = builder.build(self.state.conversation_history, inputs)
        self.calls += 1
        try:
            result = await self.executor.execute(prompt, timeout=self.timeout)
        except ExecutionError as e:
            e.usage = self.usage.merge(e.usage)
            raise
        self.usage = self.usage.merge(TokenUsageReport.single(feature_for(prompt), result.usage))
        return result.data

    async def classify(self, builder: PromptBuilder, **inputs: Any) -> ClassifierOutput:
        decision = await self.run(builder, **inputs)
        logger.info(
            "Classifier [%s]: %s (confidence %.2f)",
            self.state.stage.value,
            decision.detected_intent.value,
            decision.confidence_score,
        )
        return decision

    async def respond(self, builder: PromptBuilder, **inputs: Any) -> ResponseOutput:
        return await self.run(builder, **inputs)

    def result(self, message: str, new_state: DialogueState, ended: bool = False) -> StageResult:
        logger.debug(
            "Transition %s/%s -> %s/%s",
            self.state.stage.value,
            self.state.sub_state.value,
            new_state.stage.value,
            new_state.sub_state.value,
        )
        return StageResult(message=message, new_state=new_state, ended=ended, usage=self.usage)


class StageHandler(ABC):
    """Handles student input for one dialogue stage."""

    stage: ClassVar[DialogueStage]

    @abstractmethod
    async def handle(self, context: StageContext) -> StageResult:
        """Classify the student's input and decide the response and next state."""
        ...


def require_stance(state: DialogueState) -> StanceVersion:
    if state.current_stance is None:
        raise SessionStateError(f"stage {state.stage.value} requires an established stance")
    return state.current_stance
