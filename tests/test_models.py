"""Tests for data models and configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from sde.models import (
    DialogueStage,
    DialogueState,
    ModelConfig,
    OrchestratorConfig,
    StageResult,
    StanceVersion,
    SubState,
    Trigger,
    Turn,
)
from sde.state import update_stance


def test_initial_state_defaults():
    state = DialogueState(topic="Is lying ever justified?")
    assert state.stage == DialogueStage.AWAITING_START
    assert state.sub_state == SubState.MAIN
    assert state.loop_count == 0
    assert state.stance_history == ()
    assert state.current_stance is None
    assert state.conversation_history == ()
    assert state.summary is None
    assert not state.discussion_satisfied
    assert not state.is_terminal


def test_state_is_frozen():
    state = DialogueState(topic="t")
    with pytest.raises(ValidationError):
        state.stage = DialogueStage.CLOSURE


@pytest.mark.parametrize("stage", [DialogueStage.ENDED, DialogueStage.ABORTED])
def test_terminal_stages(stage):
    assert DialogueState(topic="t", stage=stage).is_terminal


def test_current_stance_must_match_history_tail():
    stance = StanceVersion(version=1, position="yes", established_at=0.0)
    with pytest.raises(ValidationError, match="current_stance"):
        DialogueState(topic="t", current_stance=stance)


def test_state_round_trips_through_json():
    state = update_stance(DialogueState(topic="t"), "lying is wrong", "trust matters")
    state = state.model_copy(
        update={"conversation_history": (Turn(role="model", text="Hi"), Turn(role="user", text="Yo"))}
    )
    restored = DialogueState.model_validate_json(state.model_dump_json())
    assert restored == state


def test_turn_role_restricted():
    with pytest.raises(ValidationError):
        Turn(role="assistant", text="hello")


def test_stance_version_starts_at_one():
    with pytest.raises(ValidationError):
        StanceVersion(version=0, position="p", established_at=0.0)


def test_trigger_wire_values():
    assert Trigger.CLARIFY.value == "TR_CLARIFY"
    assert Trigger.LOOP_TO_STAGE2.value == "loop_to_stage2"
    assert Trigger.ADVANCE_TO_CLOSURE.value == "advance_to_closure"
    assert Trigger("TR_CONFIRM_END") is Trigger.CONFIRM_END


def test_stage_result_defaults_to_empty_usage():
    result = StageResult(message="m", new_state=DialogueState(topic="t"))
    assert not result.ended
    assert result.usage.is_empty


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def test_orchestrator_config_defaults():
    config = OrchestratorConfig()
    assert config.max_loops == 5
    assert config.min_loops_for_closure == 1
    assert config.closing_message


def test_orchestrator_config_rejects_min_above_max():
    with pytest.raises(ValidationError, match="min_loops_for_closure"):
        OrchestratorConfig(max_loops=2, min_loops_for_closure=3)


def test_orchestrator_config_requires_a_loop():
    with pytest.raises(ValidationError):
        OrchestratorConfig(max_loops=0, min_loops_for_closure=0)


def test_model_config_defaults():
    config = ModelConfig()
    assert config.classifier_model == "gemini-2.5-flash"
    assert config.classifier_temperature < config.generator_temperature
    assert config.request_timeout_s == 60.0


def test_model_config_from_env(monkeypatch):
    monkeypatch.setenv("SDE_MODEL", "gpt-5")
    monkeypatch.setenv("SDE_CLASSIFIER_MODEL", "gpt-5-mini")
    monkeypatch.delenv("SDE_GENERATOR_MODEL", raising=False)
    monkeypatch.setenv("SDE_REQUEST_TIMEOUT", "12.5")

    config = ModelConfig.from_env()
    assert config.classifier_model == "gpt-5-mini"
    assert config.generator_model == "gpt-5"
    assert config.request_timeout_s == 12.5


def test_model_config_from_env_without_vars(monkeypatch):
    for var in ("SDE_MODEL", "SDE_CLASSIFIER_MODEL", "SDE_GENERATOR_MODEL", "SDE_REQUEST_TIMEOUT"):
        monkeypatch.delenv(var, raising=False)
    assert ModelConfig.from_env() == ModelConfig()
