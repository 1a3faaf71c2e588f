"""Prompt builders: one per stage x role."""

from .asking_stance import asking_stance_builders
from .base import PLACEHOLDER_USER_TEXT, Prompt, PromptBuilder, build_contents
from .case_challenge import case_challenge_builders
from .closure import closure_builders
from .principle_reasoning import principle_reasoning_builders
from .schemas import (
    AskingStanceClassification,
    CaseChallengeClassification,
    ClassifierOutput,
    ClosureClassification,
    ExtractedData,
    PrincipleReasoningClassification,
    ResponseOutput,
)

__all__ = [
    "PLACEHOLDER_USER_TEXT",
    "AskingStanceClassification",
    "CaseChallengeClassification",
    "ClassifierOutput",
    "ClosureClassification",
    "ExtractedData",
    "PrincipleReasoningClassification",
    "Prompt",
    "PromptBuilder",
    "ResponseOutput",
    "asking_stance_builders",
    "build_contents",
    "case_challenge_builders",
    "closure_builders",
    "principle_reasoning_builders",
]
