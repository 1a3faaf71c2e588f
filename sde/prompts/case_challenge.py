"""Stage 2 prompts: challenge the stance with counter-cases."""

from __future__ import annotations

from types import SimpleNamespace

from .base import (
    CLASSIFIER,
    RESPONSE_GENERATOR_BASE_PROMPT,
    RESPONSE_GENERATOR_OUTPUT_FORMAT,
    PromptBuilder,
)
from .schemas import CaseChallengeClassification, ResponseOutput


class CaseChallengeClassifierBuilder(PromptBuilder):
    """Inputs: current_stance, current_case, user_input, sub_state."""

    role = CLASSIFIER
    schema = CaseChallengeClassification
    output_format = CaseChallengeClassification.output_format()
    template = """\
You are a Dialogue State Classifier.
Current Stage: [CaseChallenge_{sub_state}]
Goal: Analyze how the student reacts to a counter-example (Challenge Case).

Rules:
1. **TR_CLARIFY**: The answer is off-topic, too short, or logically unclear.
2. **TR_SCAFFOLD**: The answer contradicts the previous stance, shows hesitation
   ("maybe I was wrong"), or concedes the counter-example, implying the stance needs updating.
3. **TR_CASE_COMPLETED**: The student defends the stance logically, OR integrates the case
   into their view without contradiction. If they revised their stance, put the revised
   position in extracted_data.stance and its reason in extracted_data.reasoning.

Context:
Previous Stance: {current_stance}
Current Case Challenge: {current_case}
User Input: {user_input}"""


class CaseChallengeBuilder(PromptBuilder):
    """Present a new counter-case.

    Inputs: topic, current_stance, current_reason, loop_count, current_principle.
    """

    schema = ResponseOutput
    output_format = RESPONSE_GENERATOR_OUTPUT_FORMAT
    template = """\
{base}

CURRENT STAGE: [CaseChallenge_Main]
DISCUSSION TOPIC: {topic}
STUDENT'S CURRENT STANCE: "{current_stance}"
REASON GIVEN: "{current_reason}"
PRINCIPLE SO FAR: "{current_principle}"
CASES ALREADY DISCUSSED: {loop_count}

TASK:
1. Briefly acknowledge the student's stance.
2. Present ONE concrete case, different from earlier ones, that challenges or probes it.
3. Ask one specific question about how their stance applies to the case.

CONSTRAINTS:
- If the case contradicts their stance, ask whether their view still holds here.
- If the case supports a different view, ask whether it makes them reconsider."""

    def render(self, values):
        return super().render({**values, "base": RESPONSE_GENERATOR_BASE_PROMPT})


class CaseChallengeClarifyBuilder(PromptBuilder):
    """Inputs: topic, current_case, user_input."""

    schema = ResponseOutput
    output_format = RESPONSE_GENERATOR_OUTPUT_FORMAT
    template = """\
{base}

CURRENT STAGE: [CaseChallenge_Clarify]
DISCUSSION TOPIC: {topic}
CASE UNDER DISCUSSION: "{current_case}"
STUDENT'S UNCLEAR ANSWER: "{user_input}"

TASK:
1. Restate the case in simpler terms.
2. Ask the student, in one question, how they would judge it."""

    def render(self, values):
        return super().render({**values, "base": RESPONSE_GENERATOR_BASE_PROMPT})


class CaseChallengeScaffoldBuilder(PromptBuilder):
    """Inputs: current_stance, user_input, contradiction."""

    schema = ResponseOutput
    output_format = RESPONSE_GENERATOR_OUTPUT_FORMAT
    template = """\
{base}

CURRENT STAGE: [CaseChallenge_Scaffold]
USER INPUT: "{user_input}"
LOGICAL TENSION: the input seems to contradict the earlier stance "{current_stance}".
{contradiction}
TASK:
1. Gently point out the tension or shift in their logic.
2. Ask whether they want to update or refine their original stance."""

    def render(self, values):
        contradiction = values["contradiction"]
        return super().render(
            {
                **values,
                "base": RESPONSE_GENERATOR_BASE_PROMPT,
                "contradiction": f"DETAIL: {contradiction}\n" if contradiction else "",
            }
        )


case_challenge_builders = SimpleNamespace(
    classifier=CaseChallengeClassifierBuilder(),
    challenge=CaseChallengeBuilder(),
    clarify=CaseChallengeClarifyBuilder(),
    scaffold=CaseChallengeScaffoldBuilder(),
)
