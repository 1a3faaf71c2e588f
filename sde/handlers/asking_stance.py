"""Stage 1: draw out the student's initial stance."""

from __future__ import annotations

import logging

from ..models import DialogueStage, StageResult, SubState, Trigger
from ..prompts import asking_stance_builders, case_challenge_builders
from ..state import transition_to, update_stance
from .base import StageContext, StageHandler, format_stage_response

logger = logging.getLogger(__name__)


class AskingStanceHandler(StageHandler):
    stage = DialogueStage.ASKING_STANCE

    async def handle(self, context: StageContext) -> StageResult:
        state = context.state
        decision = await context.classify(
            asking_stance_builders.classifier,
            topic=state.topic,
            user_input=context.student_message,
        )

        if decision.detected_intent == Trigger.CLARIFY:
            response = await context.respond(
                asking_stance_builders.opening,
                topic=state.topic,
                topic_context=context.topic_context,
                clarify="1",
            )
            new_state = transition_to(state, DialogueStage.ASKING_STANCE, SubState.CLARIFY)
            return context.result(format_stage_response(response), new_state)

        # TR_V1_ESTABLISHED
        extracted = decision.extracted
        position = extracted.stance
        if not position:
            logger.info("Classifier extracted no stance; recording the student's answer as V1")
            position = context.student_message
        reason = extracted.reasoning or ""

        new_state = update_stance(state, position, reason)
        new_state = transition_to(new_state, DialogueStage.CASE_CHALLENGE).model_copy(
            update={"loop_count": 0}
        )
        logger.info("Stance V%d established", new_state.current_stance.version)

        response = await context.respond(
            case_challenge_builders.challenge,
            topic=state.topic,
            current_stance=position,
            current_reason=reason,
            loop_count=0,
        )
        message = format_stage_response(response)
        new_state = new_state.model_copy(update={"current_case": message, "case_scaffolded": False})
        return context.result(message, new_state)
