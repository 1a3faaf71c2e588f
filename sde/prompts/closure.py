"""Stage 4 prompts: summarise the dialogue and confirm it with the student."""

from __future__ import annotations

from types import SimpleNamespace

from .base import (
    CLASSIFIER,
    RESPONSE_GENERATOR_BASE_PROMPT,
    RESPONSE_GENERATOR_OUTPUT_FORMAT,
    PromptBuilder,
    context_block,
)
from .schemas import ClosureClassification, ResponseOutput


class ClosureClassifierBuilder(PromptBuilder):
    """Inputs: generated_summary, user_input."""

    role = CLASSIFIER
    schema = ClosureClassification
    output_format = ClosureClassification.output_format()
    template = """\
You are a Dialogue State Classifier.
Current Stage: [Closure_Main]
Goal: Decide whether the student accepts the summary of the discussion.

Rules:
1. **TR_CLARIFY**: The student points out an error, asks for a change in wording, or
   wants something added ("mostly right, but...").
2. **TR_CONFIRM_END**: The student agrees the summary is accurate.

Context:
Generated Summary: {generated_summary}
User Input: {user_input}"""


class ClosureSummaryBuilder(PromptBuilder):
    """Summarise stance and principle evolution; with a correction, revise the summary.

    Inputs: topic, stance_v1, stance_final, key_reasoning, stance_history,
    principle_history, previous_summary, correction.
    """

    schema = ResponseOutput
    output_format = RESPONSE_GENERATOR_OUTPUT_FORMAT
    template = """\
{base}

CURRENT STAGE: [Closure_{mode}]
DISCUSSION TOPIC: {topic}
INITIAL STANCE (V1): "{stance_v1}"
FINAL STANCE: "{stance_final}"
KEY PRINCIPLE: "{key_reasoning}"

STANCE EVOLUTION:
{stance_history}

PRINCIPLE EVOLUTION:
{principle_history}

{revision}TASK:
1. In response_message, summarise the student's journey: initial stance, turning points
   after the cases, the principle they reached, and their conclusion.
2. In concise_question, ask whether the summary is accurate."""

    def render(self, values):
        correction = values["correction"]
        revision = ""
        if correction:
            revision = context_block("PREVIOUS SUMMARY", values["previous_summary"])
            revision += context_block("STUDENT'S CORRECTION", correction)
            revision += "Revise the summary to reflect the correction, keeping what was accurate.\n\n"
        return super().render(
            {
                **values,
                "base": RESPONSE_GENERATOR_BASE_PROMPT,
                "mode": "Clarify" if correction else "Main",
                "revision": revision,
            }
        )


closure_builders = SimpleNamespace(
    classifier=ClosureClassifierBuilder(),
    summary=ClosureSummaryBuilder(),
)
