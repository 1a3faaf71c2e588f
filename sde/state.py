"""Pure state and versioning utilities.

Every function takes a DialogueState and returns a new one; nothing is
mutated in place.
"""

from __future__ import annotations

import time
from typing import Optional, Sequence

from .models import (
    DialogueStage,
    DialogueState,
    PrincipleVersion,
    StanceVersion,
    SubState,
    Turn,
)


def create_initial_state(topic: str) -> DialogueState:
    """Fresh state: AWAITING_START, loop_count 0, every history empty."""
    return DialogueState(topic=topic)


def create_stance_version(position: str, reason: str, version: int) -> StanceVersion:
    return StanceVersion(
        version=version,
        position=position,
        reason=reason,
        established_at=time.time(),
    )


def create_principle_version(
    statement: str,
    classification: Optional[str],
    version: int,
) -> PrincipleVersion:
    return PrincipleVersion(
        version=version,
        statement=statement,
        classification=classification,
        established_at=time.time(),
    )


def add_to_history(state: DialogueState, role: str, text: str) -> DialogueState:
    """Append one turn to the conversation history."""
    return state.model_copy(
        update={
            "conversation_history": state.conversation_history + (Turn(role=role, text=text),)
        }
    )


def update_stance(state: DialogueState, position: str, reason: str) -> DialogueState:
    """Supersede the current stance with a new version."""
    stance = create_stance_version(position, reason, len(state.stance_history) + 1)
    return state.model_copy(
        update={
            "current_stance": stance,
            "stance_history": state.stance_history + (stance,),
        }
    )


def update_principle(
    state: DialogueState,
    statement: str,
    classification: Optional[str] = None,
) -> DialogueState:
    """Supersede the current principle with a new version."""
    principle = create_principle_version(
        statement, classification, len(state.principle_history) + 1
    )
    return state.model_copy(
        update={
            "current_principle": principle,
            "principle_history": state.principle_history + (principle,),
        }
    )


def transition_to(
    state: DialogueState,
    stage: DialogueStage,
    sub_state: SubState = SubState.MAIN,
) -> DialogueState:
    return state.model_copy(update={"stage": stage, "sub_state": sub_state})


def format_stance_history(history: Sequence[StanceVersion]) -> str:
    """Render stance versions one per line for prompt interpolation."""
    if not history:
        return "No previous stance recorded."
    return "\n".join(f"V{s.version}: {s.position} (reason: {s.reason})" for s in history)


def format_principle_history(history: Sequence[PrincipleVersion]) -> str:
    if not history:
        return "No previous principle recorded."
    return "\n".join(
        f"V{p.version}: {p.statement}" + (f" ({p.classification})" if p.classification else "")
        for p in history
    )


def last_model_message(state: DialogueState) -> str:
    """Text of the most recent model turn, or "" if there is none."""
    for turn in reversed(state.conversation_history):
        if turn.role == "model":
            return turn.text
    return ""


def summarize_state(state: DialogueState) -> dict:
    """Compact, JSON-ready snapshot of a dialogue for host APIs."""
    stance = state.current_stance
    principle = state.current_principle
    return {
        "stage": state.stage.value,
        "current_stance": (
            {"version": stance.version, "position": stance.position, "reason": stance.reason}
            if stance
            else None
        ),
        "principle_count": len(state.principle_history),
        "current_principle": (
            {
                "version": principle.version,
                "statement": principle.statement,
                "classification": principle.classification,
            }
            if principle
            else None
        ),
        "loop_count": state.loop_count,
        "discussion_satisfied": state.discussion_satisfied,
        "summary": state.summary,
    }
