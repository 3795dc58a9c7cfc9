# parser.py
# Turns raw model text into a ParsedDecision.
#
# Two strategies:
#   tagged      : <thought>, <action>, <parameter>, <final_answer> segments
#   plain text  : keyword heuristic, used when no tagged segment is found
#
# Pure functions of (raw text, known tool names). No I/O, no logging.

import json
import re
from collections.abc import Iterable
from typing import Any

from kine_agent.errors import MalformedResponseError
from kine_agent.models import FINALIZE, ParsedDecision

# Plain text shorter than this is too thin to treat as an answer.
MIN_PLAIN_TEXT_LENGTH = 10
PREVIEW_LENGTH = 100

_INNER_TAG = re.compile(r"<(\w+)>(.*?)</\1>", re.DOTALL)


def _tag_pattern(tag: str) -> re.Pattern[str]:
    name = re.escape(tag)
    return re.compile(rf"<\s*{name}\s*>(.*?)<\s*/\s*{name}\s*>", re.DOTALL | re.IGNORECASE)


def _ensure_text(raw: Any) -> str:
    if not isinstance(raw, str):
        raise MalformedResponseError(f"expected text content, got {type(raw).__name__}")
    return raw


def extract_tag(content: str, tag: str) -> str | None:
    """Return the trimmed body of the first <tag>…</tag> segment, or None."""
    match = _tag_pattern(tag).search(content)
    if not match:
        return None
    return match.group(1).strip()


def parse_parameter(segment: str | None) -> Any:
    """
    Decode a <parameter> body.

    Tries the whole segment as JSON first, then one level of nested tags
    (each value JSON-decoded when possible), then falls back to the trimmed
    raw segment.
    """
    if not segment:
        return None

    try:
        return json.loads(segment)
    except json.JSONDecodeError:
        pass

    param: dict[str, Any] = {}
    for name, body in _INNER_TAG.findall(segment):
        if not body:
            continue
        try:
            param[name] = json.loads(body)
        except json.JSONDecodeError:
            param[name] = body.strip()

    return param if param else segment.strip()


def parse_plain_text_response(raw: str, tool_names: Iterable[str] = ()) -> ParsedDecision:
    """Heuristic fallback for responses that carry no recognised tags."""
    raw = _ensure_text(raw)
    lowered = raw.lower()

    action = None
    for keyword in [*tool_names, FINALIZE]:
        if keyword and keyword.lower() in lowered:
            action = keyword
            break

    if action is None and len(raw) > MIN_PLAIN_TEXT_LENGTH:
        action = FINALIZE

    return ParsedDecision(
        thought=raw[:PREVIEW_LENGTH] + "...",
        action=action,
        final_answer=raw.strip() if action == FINALIZE else None,
    )


def parse_tagged_response(raw: str, tool_names: Iterable[str] = ()) -> ParsedDecision:
    """Extract tagged segments, deferring to the plain-text heuristic when none match."""
    raw = _ensure_text(raw)

    decision = ParsedDecision(
        thought=extract_tag(raw, "thought") or None,
        action=extract_tag(raw, "action") or None,
        parameter=parse_parameter(extract_tag(raw, "parameter")),
        final_answer=extract_tag(raw, "final_answer") or None,
    )

    if decision.is_empty():
        return parse_plain_text_response(raw, tool_names)
    return decision
