"""Tests for the pure state and versioning utilities."""

from __future__ import annotations

from sde.models import DialogueStage, SubState
from sde.state import (
    add_to_history,
    create_initial_state,
    format_principle_history,
    format_stance_history,
    last_model_message,
    summarize_state,
    transition_to,
    update_principle,
    update_stance,
)


def test_create_initial_state():
    state = create_initial_state("Animal rights")
    assert state.topic == "Animal rights"
    assert state.stage == DialogueStage.AWAITING_START
    assert state.loop_count == 0


def test_add_to_history_returns_new_state():
    state = create_initial_state("t")
    updated = add_to_history(state, "user", "hello")
    assert state.conversation_history == ()
    assert updated.conversation_history[-1].role == "user"
    assert updated.conversation_history[-1].text == "hello"


def test_update_stance_versions_monotonically():
    state = create_initial_state("t")
    state = update_stance(state, "A", "because")
    state = update_stance(state, "B", "on reflection")
    assert [s.version for s in state.stance_history] == [1, 2]
    assert state.current_stance.position == "B"
    assert state.current_stance == state.stance_history[-1]


def test_update_principle_keeps_classification():
    state = update_principle(create_initial_state("t"), "maximise welfare", "consequentialist")
    assert state.current_principle.version == 1
    assert state.current_principle.classification == "consequentialist"


def test_transition_to_defaults_to_main():
    state = transition_to(create_initial_state("t"), DialogueStage.CASE_CHALLENGE, SubState.SCAFFOLD)
    assert state.sub_state == SubState.SCAFFOLD
    state = transition_to(state, DialogueStage.PRINCIPLE_REASONING)
    assert state.stage == DialogueStage.PRINCIPLE_REASONING
    assert state.sub_state == SubState.MAIN


def test_format_histories():
    assert "No previous stance" in format_stance_history(())
    state = update_stance(create_initial_state("t"), "A", "r1")
    state = update_stance(state, "B", "r2")
    assert format_stance_history(state.stance_history) == "V1: A (reason: r1)\nV2: B (reason: r2)"

    state = update_principle(state, "P", "deontological")
    assert format_principle_history(state.principle_history) == "V1: P (deontological)"
    assert "No previous principle" in format_principle_history(())


def test_last_model_message():
    state = create_initial_state("t")
    assert last_model_message(state) == ""
    state = add_to_history(state, "model", "first case")
    state = add_to_history(state, "user", "answer")
    assert last_model_message(state) == "first case"


def test_summarize_state():
    state = update_stance(create_initial_state("t"), "A", "r")
    state = update_principle(state, "P")
    summary = summarize_state(state)
    assert summary["stage"] == "awaiting_start"
    assert summary["current_stance"] == {"version": 1, "position": "A", "reason": "r"}
    assert summary["principle_count"] == 1
    assert summary["current_principle"]["statement"] == "P"
    assert summary["summary"] is None
