"""Stage 3 prompts: extract and refine the principle behind the stance."""

from __future__ import annotations

from types import SimpleNamespace

from .base import (
    CLASSIFIER,
    RESPONSE_GENERATOR_BASE_PROMPT,
    RESPONSE_GENERATOR_OUTPUT_FORMAT,
    PromptBuilder,
)
from .schemas import PrincipleReasoningClassification, ResponseOutput


class PrincipleReasoningClassifierBuilder(PromptBuilder):
    """Inputs: current_stance, current_principle, user_input, loop_count, min_loops."""

    role = CLASSIFIER
    schema = PrincipleReasoningClassification
    output_format = PrincipleReasoningClassification.output_format()
    template = """\
You are a Dialogue State Classifier.
Current Stage: [PrincipleReasoning_Main]
Goal: Judge the principle the student articulated in support of their stance.

Rules:
1. **TR_CLARIFY**: The principle is vague or too general ("it depends on the outcome").
2. **TR_SCAFFOLD**: The principle has an internal tension, or its logical consequences
   conflict with the student's own intuitions.
3. **loop_to_stage2**: The principle is clear but should be tested with a new case
   (it is too absolute, or carries an obvious moral risk).
4. **advance_to_closure**: The principle is clear, consistent with the stance, and has
   been refined through at least {min_loops} case cycle(s).
Whenever a principle is stated, put it in extracted_data.principle and, if you can,
its kind (consequentialist, deontological, virtue-based, ...) in extracted_data.classification.

Context:
Current Stance: {current_stance}
Principle So Far: {current_principle}
Completed Case Cycles: {loop_count}
User Input: {user_input}"""


class PrincipleReasoningBuilder(PromptBuilder):
    """Ask the student to generalise their stance into a principle.

    Inputs: topic, current_stance, current_reason, stance_history.
    """

    schema = ResponseOutput
    output_format = RESPONSE_GENERATOR_OUTPUT_FORMAT
    template = """\
{base}

CURRENT STAGE: [PrincipleReasoning_Main]
DISCUSSION TOPIC: {topic}
STUDENT'S CURRENT STANCE: "{current_stance}"
REASON GIVEN: "{current_reason}"

STANCE EVOLUTION:
{stance_history}

TASK:
1. Affirm the position the student reached by thinking the case through.
2. Ask them to abstract it into a more general rule that would guide similar situations."""

    def render(self, values):
        return super().render({**values, "base": RESPONSE_GENERATOR_BASE_PROMPT})


class PrincipleReasoningClarifyBuilder(PromptBuilder):
    """Inputs: topic, user_input."""

    schema = ResponseOutput
    output_format = RESPONSE_GENERATOR_OUTPUT_FORMAT
    template = """\
{base}

CURRENT STAGE: [PrincipleReasoning_Clarify]
DISCUSSION TOPIC: {topic}
STUDENT'S UNCLEAR PRINCIPLE: "{user_input}"

TASK:
1. Point out what is vague in the current wording.
2. Ask for a more precise definition, or an example of how the rule would apply."""

    def render(self, values):
        return super().render({**values, "base": RESPONSE_GENERATOR_BASE_PROMPT})


class PrincipleReasoningScaffoldBuilder(PromptBuilder):
    """Inputs: topic, current_principle, user_input, tension."""

    schema = ResponseOutput
    output_format = RESPONSE_GENERATOR_OUTPUT_FORMAT
    template = """\
{base}

CURRENT STAGE: [PrincipleReasoning_Scaffold]
DISCUSSION TOPIC: {topic}
EARLIER PRINCIPLE: "{current_principle}"
STUDENT'S LATEST ANSWER: "{user_input}"
DETECTED TENSION: {tension}

TASK:
1. Objectively name the tension between the principle and the student's intuitions.
2. Without criticising, ask whether they want to add a condition to, or adjust, the principle."""

    def render(self, values):
        return super().render(
            {
                **values,
                "base": RESPONSE_GENERATOR_BASE_PROMPT,
                "tension": values["tension"] or "the principle may not fit every case it covers",
            }
        )


principle_reasoning_builders = SimpleNamespace(
    classifier=PrincipleReasoningClassifierBuilder(),
    reasoning=PrincipleReasoningBuilder(),
    clarify=PrincipleReasoningClarifyBuilder(),
    scaffold=PrincipleReasoningScaffoldBuilder(),
)
