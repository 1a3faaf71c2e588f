"""Stage 2: test the stance against counter-cases."""

from __future__ import annotations

import logging

from ..models import DialogueStage, DialogueState, StageResult, SubState, Trigger
from ..prompts import case_challenge_builders, principle_reasoning_builders
from ..state import format_stance_history, last_model_message, transition_to, update_stance
from .base import StageContext, StageHandler, format_stage_response, require_stance

logger = logging.getLogger(__name__)


def current_case(state: DialogueState) -> str:
    """The case under discussion, not a later clarification or scaffold of it."""
    return state.current_case or last_model_message(state)


class CaseChallengeHandler(StageHandler):
    stage = DialogueStage.CASE_CHALLENGE

    async def handle(self, context: StageContext) -> StageResult:
        state = context.state
        stance = require_stance(state)
        case = current_case(state)
        decision = await context.classify(
            case_challenge_builders.classifier,
            current_stance=stance.position,
            current_case=case,
            user_input=context.student_message,
            sub_state=state.sub_state.value.title(),
        )
        intent = decision.detected_intent

        if intent == Trigger.CLARIFY:
            response = await context.respond(
                case_challenge_builders.clarify,
                topic=state.topic,
                current_case=case,
                user_input=context.student_message,
            )
            new_state = transition_to(state, DialogueStage.CASE_CHALLENGE, SubState.CLARIFY)
            return context.result(format_stage_response(response), new_state)

        if intent == Trigger.SCAFFOLD:
            response = await context.respond(
                case_challenge_builders.scaffold,
                current_stance=stance.position,
                user_input=context.student_message,
                contradiction=decision.thought_process,
            )
            new_state = transition_to(
                state, DialogueStage.CASE_CHALLENGE, SubState.SCAFFOLD
            ).model_copy(update={"case_scaffolded": True})
            return context.result(format_stage_response(response), new_state)

        # TR_CASE_COMPLETED: a revision only counts once the case has been scaffolded
        new_state = state
        extracted = decision.extracted
        scaffolded = state.case_scaffolded or state.sub_state == SubState.SCAFFOLD
        if scaffolded and extracted.stance and extracted.stance != stance.position:
            new_state = update_stance(new_state, extracted.stance, extracted.reasoning or stance.reason)
            logger.info("Stance revised to V%d", new_state.current_stance.version)
        new_state = transition_to(new_state, DialogueStage.PRINCIPLE_REASONING).model_copy(
            update={"case_scaffolded": False}
        )

        current = new_state.current_stance
        response = await context.respond(
            principle_reasoning_builders.reasoning,
            topic=state.topic,
            current_stance=current.position,
            current_reason=current.reason,
            stance_history=format_stance_history(new_state.stance_history),
        )
        return context.result(format_stage_response(response), new_state)
