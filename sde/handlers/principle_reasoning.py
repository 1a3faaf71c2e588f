"""Stage 3: extract the principle and decide between another case and closure."""

from __future__ import annotations

import logging

from ..models import DialogueStage, DialogueState, StageResult, SubState, Trigger
from ..prompts import case_challenge_builders, closure_builders, principle_reasoning_builders
from ..prompts.schemas import ClassifierOutput
from ..state import transition_to, update_principle, update_stance
from .base import StageContext, StageHandler, format_stage_response, require_stance
from .closure import summary_inputs

logger = logging.getLogger(__name__)


def record_outcome(state: DialogueState, decision: ClassifierOutput) -> DialogueState:
    """Version the principle (and any shifted stance) the student arrived at.

    The principle falls back to the extracted reasoning. Nothing is recorded
    when the value matches the current version.
    """
    extracted = decision.extracted
    statement = extracted.principle or extracted.reasoning
    principle = state.current_principle
    if statement and (principle is None or statement != principle.statement):
        state = update_principle(state, statement, extracted.classification)

    stance = state.current_stance
    if extracted.stance and stance is not None and extracted.stance != stance.position:
        state = update_stance(state, extracted.stance, extracted.reasoning or stance.reason)
    return state


class PrincipleReasoningHandler(StageHandler):
    stage = DialogueStage.PRINCIPLE_REASONING

    async def handle(self, context: StageContext) -> StageResult:
        state = context.state
        config = context.config
        stance = require_stance(state)
        principle = state.current_principle
        decision = await context.classify(
            principle_reasoning_builders.classifier,
            current_stance=stance.position,
            current_principle=principle.statement if principle else "",
            user_input=context.student_message,
            loop_count=state.loop_count,
            min_loops=config.min_loops_for_closure,
        )
        intent = decision.detected_intent

        if intent == Trigger.CLARIFY:
            response = await context.respond(
                principle_reasoning_builders.clarify,
                topic=state.topic,
                user_input=context.student_message,
            )
            new_state = transition_to(state, DialogueStage.PRINCIPLE_REASONING, SubState.CLARIFY)
            return context.result(format_stage_response(response), new_state)

        if intent == Trigger.SCAFFOLD:
            response = await context.respond(
                principle_reasoning_builders.scaffold,
                topic=state.topic,
                current_principle=principle.statement if principle else "",
                user_input=context.student_message,
                tension=decision.thought_process,
            )
            new_state = transition_to(state, DialogueStage.PRINCIPLE_REASONING, SubState.SCAFFOLD)
            return context.result(format_stage_response(response), new_state)

        if intent == Trigger.ADVANCE_TO_CLOSURE and state.loop_count < config.min_loops_for_closure:
            logger.info(
                "Closure requested after %d loop(s), %d required; testing another case",
                state.loop_count,
                config.min_loops_for_closure,
            )
            intent = Trigger.LOOP_TO_STAGE2

        # Versions are recorded before the stage changes
        new_state = record_outcome(state, decision)

        if intent == Trigger.LOOP_TO_STAGE2:
            loop_count = min(state.loop_count + 1, config.max_loops)
            if loop_count >= config.max_loops:
                logger.info("Loop limit %d reached; moving to closure", config.max_loops)
                return await self._close(context, new_state.model_copy(update={"loop_count": loop_count}))
            return await self._loop(context, new_state, loop_count)

        return await self._close(context, new_state)

    async def _loop(self, context: StageContext, state: DialogueState, loop_count: int) -> StageResult:
        new_state = transition_to(state, DialogueStage.CASE_CHALLENGE).model_copy(
            update={"loop_count": loop_count}
        )
        stance = new_state.current_stance
        principle = new_state.current_principle
        response = await context.respond(
            case_challenge_builders.challenge,
            topic=state.topic,
            current_stance=stance.position,
            current_reason=stance.reason,
            current_principle=principle.statement if principle else "",
            loop_count=loop_count,
        )
        logger.info("Loop %d/%d: new case challenge", loop_count, context.config.max_loops)
        message = format_stage_response(response)
        new_state = new_state.model_copy(update={"current_case": message, "case_scaffolded": False})
        return context.result(message, new_state)

    async def _close(self, context: StageContext, state: DialogueState) -> StageResult:
        response = await context.respond(closure_builders.summary, **summary_inputs(state))
        new_state = transition_to(state, DialogueStage.CLOSURE).model_copy(
            update={"summary": response.response_message}
        )
        return context.result(format_stage_response(response), new_state)
