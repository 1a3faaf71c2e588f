"""Output schemas for classifier and response-generator calls.

The execution adapter validates every structured model response against one
of these. Constraints the dialogue depends on (the stage's trigger set, the
confidence range, a single concise question) are enforced here rather than
assumed from the model.
"""

from __future__ import annotations

from typing import ClassVar, Optional

from pydantic import BaseModel, Field, field_validator

from ..models import Trigger
from .base import CLASSIFIER_OUTPUT_FORMAT

QUESTION_MARKS = ("?", "？")  # ASCII and full-width


class ExtractedData(BaseModel):
    """Optional facts the classifier pulled from the student's answer."""

    stance: Optional[str] = None
    reasoning: Optional[str] = None
    principle: Optional[str] = None
    classification: Optional[str] = None

    @field_validator("stance", "reasoning", "principle", "classification", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        if isinstance(value, str):
            return value.strip()
        return value


class ClassifierOutput(BaseModel):
    """Base classifier schema; subclasses narrow ``allowed_triggers``."""

    allowed_triggers: ClassVar[tuple[Trigger, ...]] = tuple(Trigger)

    thought_process: str
    detected_intent: Trigger
    confidence_score: float = Field(ge=0.0, le=1.0)
    extracted_data: Optional[ExtractedData] = None

    @field_validator("detected_intent")
    @classmethod
    def _intent_in_stage_set(cls, value: Trigger) -> Trigger:
        if value not in cls.allowed_triggers:
            allowed = ", ".join(t.value for t in cls.allowed_triggers)
            raise ValueError(f"intent {value.value!r} not valid here (expected one of: {allowed})")
        return value

    @property
    def extracted(self) -> ExtractedData:
        return self.extracted_data or ExtractedData()

    @classmethod
    def output_format(cls) -> str:
        return CLASSIFIER_OUTPUT_FORMAT.format(
            intents=" | ".join(t.value for t in cls.allowed_triggers)
        )


class AskingStanceClassification(ClassifierOutput):
    allowed_triggers: ClassVar[tuple[Trigger, ...]] = (
        Trigger.CLARIFY,
        Trigger.V1_ESTABLISHED,
    )


class CaseChallengeClassification(ClassifierOutput):
    allowed_triggers: ClassVar[tuple[Trigger, ...]] = (
        Trigger.CLARIFY,
        Trigger.SCAFFOLD,
        Trigger.CASE_COMPLETED,
    )


class PrincipleReasoningClassification(ClassifierOutput):
    allowed_triggers: ClassVar[tuple[Trigger, ...]] = (
        Trigger.CLARIFY,
        Trigger.SCAFFOLD,
        Trigger.LOOP_TO_STAGE2,
        Trigger.ADVANCE_TO_CLOSURE,
    )


class ClosureClassification(ClassifierOutput):
    allowed_triggers: ClassVar[tuple[Trigger, ...]] = (
        Trigger.CLARIFY,
        Trigger.CONFIRM_END,
    )


class ResponseOutput(BaseModel):
    """Response-generator schema shared by every stage."""

    thought_process: str
    response_message: str
    concise_question: str

    @field_validator("concise_question")
    @classmethod
    def _exactly_one_question(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("concise_question must not be empty")
        if sum(value.count(mark) for mark in QUESTION_MARKS) > 1:
            raise ValueError("concise_question must ask exactly one question")
        return value
