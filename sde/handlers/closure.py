"""Stage 4: confirm the summary and end the dialogue."""

from __future__ import annotations

import logging

from ..models import DialogueStage, DialogueState, StageResult, SubState, Trigger
from ..prompts import closure_builders
from ..state import (
    format_principle_history,
    format_stance_history,
    last_model_message,
    transition_to,
)
from .base import StageContext, StageHandler, format_stage_response

logger = logging.getLogger(__name__)


def summary_inputs(state: DialogueState) -> dict[str, str]:
    """Template inputs for the closure summary builder."""
    first = state.stance_history[0] if state.stance_history else None
    current = state.current_stance
    principle = state.current_principle
    return {
        "topic": state.topic,
        "stance_v1": first.position if first else "",
        "stance_final": current.position if current else "",
        "key_reasoning": principle.statement if principle else (current.reason if current else ""),
        "stance_history": format_stance_history(state.stance_history),
        "principle_history": format_principle_history(state.principle_history),
    }


class ClosureHandler(StageHandler):
    stage = DialogueStage.CLOSURE

    async def handle(self, context: StageContext) -> StageResult:
        state = context.state
        summary = state.summary or last_model_message(state)
        decision = await context.classify(
            closure_builders.classifier,
            generated_summary=summary,
            user_input=context.student_message,
        )

        if decision.detected_intent == Trigger.CLARIFY:
            response = await context.respond(
                closure_builders.summary,
                **summary_inputs(state),
                previous_summary=summary,
                correction=context.student_message,
            )
            new_state = transition_to(state, DialogueStage.CLOSURE, SubState.CLARIFY).model_copy(
                update={"summary": response.response_message}
            )
            return context.result(format_stage_response(response), new_state)

        # TR_CONFIRM_END
        new_state = transition_to(state, DialogueStage.ENDED).model_copy(
            update={"summary": summary, "discussion_satisfied": True}
        )
        logger.info("Dialogue on %r confirmed and ended", state.topic)
        return context.result(context.config.closing_message, new_state, ended=True)
