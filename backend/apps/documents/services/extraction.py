"""
Best-effort coercion of backend text into JSON values.

The backend does not always honour "return only JSON": answers arrive
wrapped in code fences, with trailing commas, with prose around them, or as
several objects glued together without an enclosing array. Every such
heuristic lives here so call sites only ever see ``extract_structured``.
"""
from __future__ import annotations

import json
import re
from typing import Any, Callable, List

NO_PARSE = object()

ParseStrategy = Callable[[str], Any]

_FENCE_RE = re.compile(r"^\s*```[ \t]*(?:json)?[ \t]*\r?\n?(.*?)\r?\n?[ \t]*```\s*$", re.DOTALL | re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",[ \t]*(\r?\n\s*)(?=[}\]])")
_ADJACENT_OBJECTS_RE = re.compile(r"\}\s*\{")
_DECODER = json.JSONDecoder()


def strip_code_fence(text: str) -> str:
    match = _FENCE_RE.match(text)
    return match.group(1) if match else text


def strip_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def clean_response(raw: str) -> str:
    return strip_trailing_commas(strip_code_fence(raw or "")).strip()


def try_direct(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return NO_PARSE


def try_first_span(text: str) -> Any:
    """Decode the first complete ``[...]`` or ``{...}`` value found in the text."""
    for idx, char in enumerate(text):
        if char not in "[{":
            continue
        try:
            value, end = _DECODER.raw_decode(text, idx)
        except ValueError:
            continue
        # glued objects ("{...}{...}") are left for try_adjacent_objects when they join cleanly
        if char == "{" and text[end:].lstrip().startswith("{") and try_adjacent_objects(text) is not NO_PARSE:
            return NO_PARSE
        return value
    return NO_PARSE


def try_adjacent_objects(text: str) -> Any:
    if not _ADJACENT_OBJECTS_RE.search(text):
        return NO_PARSE
    joined = "[" + _ADJACENT_OBJECTS_RE.sub("},{", text) + "]"
    value = try_direct(joined)
    return value if isinstance(value, list) else NO_PARSE


STRATEGIES: List[ParseStrategy] = [try_direct, try_first_span, try_adjacent_objects]


def extract_structured(raw: str) -> Any:
    """
    Return the parsed JSON value, or the cleaned text when nothing parses.

    Never raises; callers decide what an unparsed string means for them.
    """
    cleaned = clean_response(raw)
    for strategy in STRATEGIES:
        value = strategy(cleaned)
        if value is not NO_PARSE:
            return value
    return cleaned
