"""Core data models for the Socratic Dialogue Engine."""

from __future__ import annotations

import os
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .usage import TokenUsageReport


class DialogueStage(str, Enum):
    """Main phases of the dialogue."""

    AWAITING_START = "awaiting_start"
    ASKING_STANCE = "asking_stance"
    CASE_CHALLENGE = "case_challenge"
    PRINCIPLE_REASONING = "principle_reasoning"
    CLOSURE = "closure"
    ENDED = "ended"
    ABORTED = "aborted"


TERMINAL_STAGES = frozenset({DialogueStage.ENDED, DialogueStage.ABORTED})


class SubState(str, Enum):
    """Position within a stage."""

    MAIN = "main"
    CLARIFY = "clarify"
    SCAFFOLD = "scaffold"


class Trigger(str, Enum):
    """Classifier outcomes that drive stage transitions."""

    CLARIFY = "TR_CLARIFY"
    SCAFFOLD = "TR_SCAFFOLD"
    V1_ESTABLISHED = "TR_V1_ESTABLISHED"
    CASE_COMPLETED = "TR_CASE_COMPLETED"
    LOOP_TO_STAGE2 = "loop_to_stage2"
    ADVANCE_TO_CLOSURE = "advance_to_closure"
    CONFIRM_END = "TR_CONFIRM_END"


class Turn(BaseModel):
    """One message in the conversation history."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "model"]
    text: str


class StanceVersion(BaseModel):
    """A versioned snapshot of the student's position."""

    model_config = ConfigDict(frozen=True)

    version: int = Field(ge=1)
    position: str
    reason: str = ""
    established_at: float


class PrincipleVersion(BaseModel):
    """A versioned snapshot of the principle underlying the student's stance."""

    model_config = ConfigDict(frozen=True)

    version: int = Field(ge=1)
    statement: str
    classification: Optional[str] = None  # e.g. "consequentialist", "deontological"
    established_at: float


class DialogueState(BaseModel):
    """Complete state of a dialogue between two orchestrator calls.

    Immutable: every transition returns a new instance. The host application
    persists it between calls.
    """

    model_config = ConfigDict(frozen=True)

    topic: str
    stage: DialogueStage = DialogueStage.AWAITING_START
    sub_state: SubState = SubState.MAIN
    loop_count: int = Field(default=0, ge=0)
    stance_history: tuple[StanceVersion, ...] = ()
    current_stance: Optional[StanceVersion] = None
    principle_history: tuple[PrincipleVersion, ...] = ()
    current_principle: Optional[PrincipleVersion] = None
    conversation_history: tuple[Turn, ...] = ()
    # Case presented on entering CASE_CHALLENGE/MAIN; survives clarify and scaffold turns
    current_case: Optional[str] = None
    # Set once the current case has been scaffolded, cleared when the case completes
    case_scaffolded: bool = False
    summary: Optional[str] = None
    discussion_satisfied: bool = False

    @model_validator(mode="after")
    def _current_matches_history(self) -> DialogueState:
        expected_stance = self.stance_history[-1] if self.stance_history else None
        if self.current_stance != expected_stance:
            raise ValueError("current_stance must be the last element of stance_history")
        expected_principle = self.principle_history[-1] if self.principle_history else None
        if self.current_principle != expected_principle:
            raise ValueError("current_principle must be the last element of principle_history")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES


class StageResult(BaseModel):
    """Outcome of one orchestrator call. Not persisted."""

    model_config = ConfigDict(frozen=True)

    message: str
    new_state: DialogueState
    ended: bool = False
    usage: TokenUsageReport = Field(default_factory=TokenUsageReport.empty)


DEFAULT_CLOSING_MESSAGE = (
    "Thank you for thinking this through with me. "
    "I hope the discussion helped you see your own reasoning more clearly."
)


class OrchestratorConfig(BaseModel):
    """Loop bounds and fixed texts for the dialogue state machine."""

    # Stage 2-3 loops before closure is forced
    max_loops: int = Field(default=5, ge=1)
    # Loops required before the classifier may advance to closure
    min_loops_for_closure: int = Field(default=1, ge=0)
    closing_message: str = DEFAULT_CLOSING_MESSAGE

    @model_validator(mode="after")
    def _check_bounds(self) -> OrchestratorConfig:
        if self.min_loops_for_closure > self.max_loops:
            raise ValueError(
                f"min_loops_for_closure ({self.min_loops_for_closure}) "
                f"exceeds max_loops ({self.max_loops})"
            )
        return self


class ModelConfig(BaseModel):
    """Which models serve the classifier and generator roles, and how."""

    classifier_model: str = "gemini-2.5-flash"
    generator_model: str = "gemini-2.5-flash"

    # Classification wants determinism; generation a little variety
    classifier_temperature: float = 0.1
    generator_temperature: float = 0.7

    max_tokens: int = 2048
    # Per-call deadline in seconds
    request_timeout_s: float = Field(default=60.0, gt=0)

    @classmethod
    def from_env(cls) -> ModelConfig:
        """Build a config from ``SDE_*`` environment variables.

        ``SDE_MODEL`` sets both roles; ``SDE_CLASSIFIER_MODEL`` and
        ``SDE_GENERATOR_MODEL`` override it per role.
        """
        values: dict = {}
        shared = os.environ.get("SDE_MODEL")
        classifier = os.environ.get("SDE_CLASSIFIER_MODEL") or shared
        generator = os.environ.get("SDE_GENERATOR_MODEL") or shared
        if classifier:
            values["classifier_model"] = classifier
        if generator:
            values["generator_model"] = generator
        timeout = os.environ.get("SDE_REQUEST_TIMEOUT")
        if timeout:
            values["request_timeout_s"] = float(timeout)
        return cls.model_validate(values)
