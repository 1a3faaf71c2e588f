"""Dialogue orchestrator: the session control surface.

The orchestrator keeps no session table. Every call takes a DialogueState and
returns a new one inside a StageResult; the host persists it between calls.

Usage:
    async with PromptExecutor(config=ModelConfig.from_env()) as executor:
        orchestrator = DialogueOrchestrator(executor)
        state = orchestrator.initialize_session("Is lying ever justified?")
        result = await orchestrator.start_conversation(state)
        result = await orchestrator.process_student_input(result.new_state, "Yes, when...")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from .errors import ConfigurationError, SessionStateError
from .handlers.base import StageContext, StageHandler, format_stage_response
from .models import DialogueStage, DialogueState, OrchestratorConfig, StageResult
from .prompts import asking_stance_builders
from .registry import StageHandlerRegistry
from .state import add_to_history, create_initial_state, transition_to

if TYPE_CHECKING:
    from .executor import PromptExecutor

logger = logging.getLogger(__name__)


class DialogueOrchestrator:
    """Drives a Socratic dialogue one student turn at a time."""

    def __init__(
        self,
        executor: PromptExecutor,
        config: OrchestratorConfig | None = None,
        registry: StageHandlerRegistry | None = None,
    ) -> None:
        self.executor = executor
        self.config = config or OrchestratorConfig()
        self.registry = registry if registry is not None else StageHandlerRegistry.with_defaults()

    def register_handler(self, handler: StageHandler) -> None:
        """Install a handler, replacing any registered for the same stage."""
        self.registry.register(handler, replace=True)

    def initialize_session(self, topic: str) -> DialogueState:
        logger.info("New session on topic %r", topic)
        return create_initial_state(topic)

    async def start_conversation(
        self,
        state: DialogueState,
        topic_context: str = "",
        timeout: Optional[float] = None,
    ) -> StageResult:
        """Generate the opening question and move to ASKING_STANCE."""
        if state.stage != DialogueStage.AWAITING_START:
            raise SessionStateError(
                f"conversation already started (stage {state.stage.value})"
            )

        context = self._context(state, "", topic_context, timeout)
        response = await context.respond(
            asking_stance_builders.opening,
            topic=state.topic,
            topic_context=topic_context,
        )
        message = format_stage_response(response)
        new_state = add_to_history(
            transition_to(state, DialogueStage.ASKING_STANCE), "model", message
        )
        logger.info("Conversation on %r started", state.topic)
        return StageResult(message=message, new_state=new_state, usage=context.usage)

    async def process_student_input(
        self,
        state: DialogueState,
        text: str,
        topic_context: str = "",
        timeout: Optional[float] = None,
    ) -> StageResult:
        """Handle one student message.

        The user turn is appended first, the current stage's handler decides
        the reply and next state, and the reply is appended as a model turn.
        If a model call fails the ExecutionError propagates with the usage of
        every call made so far; the caller's state is unchanged.
        """
        if state.is_terminal:
            raise SessionStateError(f"conversation is over (stage {state.stage.value})")
        if state.stage == DialogueStage.AWAITING_START:
            raise SessionStateError("conversation not started; call start_conversation first")

        with_input = add_to_history(state, "user", text)
        handler = self.registry.get(state.stage)
        if handler is None:
            raise ConfigurationError(
                ConfigurationError.UNREGISTERED_STAGE,
                f"no handler registered for stage {state.stage.value!r}",
            )

        logger.info("Stage %s/%s: handling student input", state.stage.value, state.sub_state.value)
        context = self._context(with_input, text, topic_context, timeout)
        result = await handler.handle(context)

        new_state = add_to_history(result.new_state, "model", result.message)
        if new_state.stage != state.stage:
            logger.info("Stage %s -> %s", state.stage.value, new_state.stage.value)
        return StageResult(
            message=result.message,
            new_state=new_state,
            ended=result.ended,
            usage=result.usage,
        )

    def abort(self, state: DialogueState) -> DialogueState:
        """Abandon the dialogue. Terminal states are returned unchanged."""
        if state.is_terminal:
            return state
        logger.info("Session on %r aborted at %s", state.topic, state.stage.value)
        return transition_to(state, DialogueStage.ABORTED)

    def is_ended(self, state: DialogueState) -> bool:
        return state.is_terminal

    def _context(
        self,
        state: DialogueState,
        student_message: str,
        topic_context: str,
        timeout: Optional[float],
    ) -> StageContext:
        return StageContext(
            executor=self.executor,
            state=state,
            config=self.config,
            student_message=student_message,
            topic_context=topic_context,
            timeout=timeout,
        )
