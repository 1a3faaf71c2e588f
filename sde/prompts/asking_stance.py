"""Stage 1 prompts: establish the student's initial stance (V1)."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Mapping

from .base import (
    CLASSIFIER,
    RESPONSE_GENERATOR_BASE_PROMPT,
    RESPONSE_GENERATOR_OUTPUT_FORMAT,
    PromptBuilder,
    context_block,
)
from .schemas import AskingStanceClassification, ResponseOutput


class AskingStanceOpeningBuilder(PromptBuilder):
    """Opening question; re-used in clarify mode when the stance is unclear.

    Inputs: topic, topic_context, clarify ("1" when re-asking).
    """

    schema = ResponseOutput
    output_format = RESPONSE_GENERATOR_OUTPUT_FORMAT
    template = """\
{base}

CURRENT STAGE: [AskingStance_{mode}]
DISCUSSION TOPIC: {topic}

{context}
TASK:
{task}"""

    OPENING_TASK = """\
1. Briefly introduce today's topic.
2. Invite the student to share their initial position on it.
3. Encourage them to state their intuition, even if it is tentative."""

    CLARIFY_TASK = """\
The student has not yet taken a clear position.
1. Acknowledge that the question is genuinely complex.
2. Still ask them to lean one way, even provisionally.
3. A framing such as "If you had to choose..." may help them commit."""

    def render(self, values: Mapping[str, str]) -> str:
        clarify = bool(values["clarify"])
        body = self.template.format(
            base=RESPONSE_GENERATOR_BASE_PROMPT,
            mode="Clarify" if clarify else "Main",
            topic=values["topic"],
            context=context_block("BACKGROUND", values["topic_context"]),
            task=self.CLARIFY_TASK if clarify else self.OPENING_TASK,
        )
        return f"{body.strip()}\n\n{self.output_format}"


class AskingStanceClassifierBuilder(PromptBuilder):
    """Decide whether the student stated a position with a reason.

    Inputs: topic, user_input.
    """

    role = CLASSIFIER
    schema = AskingStanceClassification
    output_format = AskingStanceClassification.output_format()
    template = """\
You are a Dialogue State Classifier.
Current Stage: [AskingStance_Main]
Goal: Decide whether the student has committed to an initial position.

Rules:
1. **TR_CLARIFY**: The answer is ambiguous ("both sides have a point", "hard to say"),
   off-topic, or gives no reason at all.
2. **TR_V1_ESTABLISHED**: The student clearly takes a side AND gives at least one
   supporting reason. Put the position in extracted_data.stance and the reason in
   extracted_data.reasoning.

Context:
Topic: {topic}
User Input: {user_input}"""


asking_stance_builders = SimpleNamespace(
    opening=AskingStanceOpeningBuilder(),
    classifier=AskingStanceClassifierBuilder(),
)
