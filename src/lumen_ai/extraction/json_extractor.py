"""Recover a structured record from free-form model output.

Extraction never raises.  Each call walks four stages and reports which one
produced the record:

1. ``direct``: the whole text parses as a JSON object.
2. ``fenced``: a Markdown code block (```json or bare ```) holds one.
3. ``braces``: a balanced ``{...}`` region found by a string-aware scan;
   the longest candidate wins.
4. ``fallback``: a tagged error record with a truncated copy of the input
   and a minimal default shape so downstream field access still works.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from lumen_ai.core.types import JsonDict

log = logging.getLogger(__name__)

Stage = Literal["direct", "fenced", "braces", "fallback"]

PREVIEW_CHARS = 2000
MAX_DECODE_DEPTH = 4
PARSE_ERROR_KEY = "_parse_error"
ERROR_MESSAGE_KEY = "_error_message"
ORIGINAL_CONTENT_KEY = "_original_content"

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?```", re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


@dataclass(frozen=True)
class ExtractedRecord:
    """Result of one extraction. ``ok`` is False only for the fallback stage."""

    data: JsonDict
    stage: Stage
    error: Optional[str] = None
    original_preview: str = field(default="", repr=False)

    @property
    def ok(self) -> bool:
        return self.stage != "fallback"


def _try_parse(text: str) -> Any | None:
    """Parse ``text`` as JSON, then again with trailing commas removed."""
    text = text.strip()
    if not text:
        return None
    try:
        return json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        pass
    relaxed = _TRAILING_COMMA_RE.sub(r"\1", text)
    if relaxed == text:
        return None
    try:
        return json.loads(relaxed)
    except (json.JSONDecodeError, RecursionError):
        return None


def _as_object(parsed: Any, decode_depth: int) -> JsonDict | None:
    """A parsed dict, or the object held by a JSON-encoded string while depth remains."""
    if isinstance(parsed, dict):
        return parsed
    if isinstance(parsed, str) and decode_depth > 0:
        found = _extract(parsed, decode_depth - 1)
        if found is not None:
            return found[0]
    return None


def _balanced_candidates(text: str) -> list[str]:
    """Outermost balanced ``{...}`` regions, skipping braces inside string literals.

    One pass with a stack of open positions.  Braces left unclosed never
    close a region, so an inner balanced object inside a truncated outer one
    is still reported.
    """
    opened: list[int] = []
    closed: list[tuple[int, int]] = []
    in_string = False
    escape = False
    for i, ch in enumerate(text):
        if not opened:
            if ch == "{":
                opened.append(i)
                in_string = escape = False
            continue
        if escape:
            escape = False
        elif in_string:
            if ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            opened.append(i)
        elif ch == "}":
            closed.append((opened.pop(), i))

    # Regions nest or are disjoint; keep those not inside another one
    candidates: list[str] = []
    reach = -1
    for start, end in sorted(closed, key=lambda region: (region[0], -region[1])):
        if end > reach:
            candidates.append(text[start : end + 1])
            reach = end
    return candidates


def _fallback(text: str, message: str) -> ExtractedRecord:
    preview = text[:PREVIEW_CHARS]
    data: JsonDict = {
        PARSE_ERROR_KEY: True,
        ERROR_MESSAGE_KEY: message,
        ORIGINAL_CONTENT_KEY: preview,
        "title": "Untitled (parse error)",
        "summary": "The model response could not be parsed as structured data.",
        "sections": [],
    }
    return ExtractedRecord(data=data, stage="fallback", error=message, original_preview=preview)


def _extract(text: str, decode_depth: int) -> tuple[JsonDict, Stage] | None:
    data = _as_object(_try_parse(text), decode_depth)
    if data is not None:
        return data, "direct"

    for match in _FENCE_RE.finditer(text):
        data = _as_object(_try_parse(match.group(1)), decode_depth)
        if data is not None:
            log.debug("Extracted JSON from fenced block")
            return data, "fenced"

    for candidate in sorted(_balanced_candidates(text), key=len, reverse=True):
        data = _as_object(_try_parse(candidate), decode_depth)
        if data is not None:
            log.debug("Extracted JSON from brace scan (%d chars)", len(candidate))
            return data, "braces"
    return None


def _run(text: Any, decode_depth: int) -> ExtractedRecord:
    if not isinstance(text, str) or not text:
        log.warning("Structured extraction received invalid input (%s)", type(text).__name__)
        return _fallback("" if text is None else str(text), "Invalid input: expected non-empty text")

    found = _extract(text, decode_depth)
    if found is not None:
        data, stage = found
        return ExtractedRecord(data=data, stage=stage)

    log.warning("Structured extraction failed; preview: %.200s", text)
    return _fallback(text, "No valid JSON object found in model response")


def extract_structured(text: Any) -> ExtractedRecord:
    """Extract a JSON object from ``text``. Never raises."""
    return _run(text, 0)


def extract_double_encoded(text: Any, max_depth: int = MAX_DECODE_DEPTH) -> ExtractedRecord:
    """Like :func:`extract_structured`, but a stage that yields a JSON string
    is extracted again, up to ``max_depth`` levels of encoding.
    """
    return _run(text, max_depth)


def has_parse_error(data: Any) -> bool:
    return isinstance(data, dict) and data.get(PARSE_ERROR_KEY) is True


def extract_json(text: Any) -> JsonDict:
    """Shorthand for ``extract_structured(text).data``."""
    return extract_structured(text).data
