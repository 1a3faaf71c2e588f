"""Prompt contract shared by every stage builder."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping, Optional, Sequence

from ..models import Turn

if TYPE_CHECKING:
    from pydantic import BaseModel

CLASSIFIER = "classifier"
GENERATOR = "generator"

# The chat protocol requires the final turn of a request to come from the user.
PLACEHOLDER_USER_TEXT = "[please start]"

RESPONSE_GENERATOR_BASE_PROMPT = """\
SYSTEM ROLE: You are a Socratic dialogue partner in an educational setting.
TONE: Polite, neutral, concise and guiding.

CORE RULES:
1. Brevity: the body of your reply is 1-2 sentences. Do not lecture.
2. One question: every turn ends with exactly one clear, concise question.
3. Neutrality: never judge the student. Use their own logic to guide them.
4. JSON output: respond strictly in the JSON format described below."""

RESPONSE_GENERATOR_OUTPUT_FORMAT = """\
OUTPUT FORMAT (respond with ONLY this JSON, no other text):
{
  "thought_process": "<brief plan of what to say, based on the student's input>",
  "response_message": "<main dialogue text: acknowledgement, transition or explanation>",
  "concise_question": "<the single question that prompts the student's next thought>"
}"""

CLASSIFIER_OUTPUT_FORMAT = """\
OUTPUT FORMAT (respond with ONLY this JSON, no other text):
{{
  "thought_process": "<brief analysis of the answer's logic, clarity and consistency>",
  "detected_intent": "<one of: {intents}>",
  "confidence_score": <float between 0.0 and 1.0>,
  "extracted_data": {{
    "stance": "<stance stated or updated by the student, or null>",
    "reasoning": "<reasoning given by the student, or null>",
    "principle": "<general principle articulated by the student, or null>",
    "classification": "<kind of principle, e.g. consequentialist, or null>"
  }}
}}"""


@dataclass(frozen=True)
class Prompt:
    """A structured request for the execution adapter."""

    system_instruction: str
    contents: tuple[Turn, ...]
    schema: Optional[type[BaseModel]] = None
    role: str = GENERATOR


class _TemplateValues(dict):
    """Template inputs; absent keys render as empty strings."""

    def __missing__(self, key: str) -> str:
        return ""


def build_contents(history: Sequence[Turn]) -> tuple[Turn, ...]:
    """Copy history, appending a placeholder user turn if the last turn isn't the user's."""
    contents = tuple(history)
    if not contents or contents[-1].role != "user":
        contents = contents + (Turn(role="user", text=PLACEHOLDER_USER_TEXT),)
    return contents


class PromptBuilder:
    """Builds one stage x role prompt from a ``str.format`` template.

    Subclasses set ``template``, ``schema`` and ``role``, and may override
    ``render`` when a section is conditional on its inputs. ``output_format``
    is appended verbatim after formatting, so it may contain literal braces.
    """

    template: str = ""
    output_format: str = ""
    schema: Optional[type[BaseModel]] = None
    role: str = GENERATOR

    def build(
        self,
        history: Sequence[Turn],
        inputs: Optional[Mapping[str, object]] = None,
    ) -> Prompt:
        values = _TemplateValues(
            {k: "" if v is None else str(v) for k, v in (inputs or {}).items()}
        )
        return Prompt(
            system_instruction=self.render(values),
            contents=build_contents(history),
            schema=self.schema,
            role=self.role,
        )

    def render(self, values: Mapping[str, str]) -> str:
        body = self.template.format_map(_TemplateValues(values)).strip()
        if self.output_format:
            return f"{body}\n\n{self.output_format}"
        return body


def context_block(title: str, body: str) -> str:
    """A titled section, or nothing when the body is empty."""
    return f"===== {title} =====\n{body}\n" if body else ""
