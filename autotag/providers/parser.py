"""Parsing of free-form backend replies into tag suggestions."""

import json
import re
from typing import Any

from autotag.providers.models import TagSuggestion

JSON_CONFIDENCE = 0.8
FALLBACK_CONFIDENCE = 0.7

# Greedy so a list of objects with nested brackets is captured whole.
JSON_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")

# First word-like token on a line, ignoring list bullets and a leading '#'.
LINE_TAG_PATTERN = re.compile(r"(?:^|\s)#?([^\W\d_][\w\-/]*)")


def _coerce_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return JSON_CONFIDENCE
    if value != value:  # NaN
        return JSON_CONFIDENCE
    return min(1.0, max(0.0, float(value)))


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _suggestion_from_item(item: Any) -> TagSuggestion | None:
    """Build a suggestion from one JSON array element, or None if unusable."""
    if isinstance(item, str):
        tag = item.strip()
        return TagSuggestion(tag=tag, confidence=JSON_CONFIDENCE) if tag else None

    if not isinstance(item, dict):
        return None

    raw_tag = item.get("tag") or item.get("name")
    if not isinstance(raw_tag, str) or not raw_tag.strip():
        return None

    confidence = item.get("confidence")
    return TagSuggestion(
        tag=raw_tag.strip(),
        confidence=JSON_CONFIDENCE if confidence is None else _coerce_confidence(confidence),
        category=_optional_text(item.get("category")),
        description=_optional_text(item.get("description")),
    )


def _parse_json_array(reply: str) -> list[TagSuggestion] | None:
    match = JSON_ARRAY_PATTERN.search(reply)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except (ValueError, RecursionError):
        return None
    if not isinstance(parsed, list):
        return None

    suggestions = []
    for item in parsed:
        suggestion = _suggestion_from_item(item)
        if suggestion is not None:
            suggestions.append(suggestion)
    return suggestions


def _parse_lines(reply: str) -> list[TagSuggestion]:
    suggestions = []
    for line in reply.splitlines():
        match = LINE_TAG_PATTERN.search(line)
        if match and len(match.group(1)) > 1:
            suggestions.append(TagSuggestion(tag=match.group(1), confidence=FALLBACK_CONFIDENCE))
    return suggestions


def parse_tag_response(reply: str) -> list[TagSuggestion]:
    """Turn a backend reply into tag suggestions.

    The reply is first searched for a JSON array, whose elements may be
    plain strings or objects with `tag` (or `name`), `confidence`,
    `category` and `description`. If no array parses, each line
    contributes its first word-like token at a fixed lower confidence.

    Args:
        reply: Raw text returned by the backend

    Returns:
        Suggestions in reply order, all with source 'llm'. May be empty;
        this function does not raise.

    Examples:
        >>> [s.tag for s in parse_tag_response('["python", {"tag": "api"}]')]
        ['python', 'api']
        >>> parse_tag_response("- python\\n- testing")[0].confidence
        0.7
    """
    if not reply:
        return []
    parsed = _parse_json_array(reply)
    if parsed is not None:
        return parsed
    return _parse_lines(reply)
