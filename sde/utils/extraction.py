"""Extraction utilities for parsing LLM outputs."""

from __future__ import annotations

import json
import re


def extract_json_block(text: str) -> str | None:
    """
    Extract a JSON object from LLM output.
    Tries a ```json ... ``` fenced block first, then the outermost { ... }.
    Returns None if nothing object-shaped is found. The result is not
    repaired; callers validate it.
    """
    stripped = text.strip()
    if stripped.startswith("{") and _is_valid_json(stripped):
        return stripped

    match = re.search(r"```(?:json)?\s*\n?(.*?)\n?\s*```", text, re.DOTALL)
    if match:
        return match.group(1).strip()

    return _extract_balanced(text, "{", "}")


def _extract_balanced(text: str, open_ch: str, close_ch: str) -> str | None:
    """Extract a balanced delimited block from text, ignoring delimiters inside strings."""
    depth = 0
    start = None
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"' and depth > 0:
            in_string = True
        elif ch == open_ch:
            if depth == 0:
                start = i
            depth += 1
        elif ch == close_ch and depth > 0:
            depth -= 1
            if depth == 0 and start is not None:
                return text[start : i + 1]
    return None


def _is_valid_json(text: str) -> bool:
    """Check if text is valid JSON."""
    try:
        json.loads(text)
        return True
    except (json.JSONDecodeError, ValueError):
        return False
