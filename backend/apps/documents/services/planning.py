from __future__ import annotations

import logging
from typing import Any, List, Optional

from . import prompts
from .extraction import extract_structured
from .exceptions import BlueprintError, PlanningError
from .llm import CompletionClient
from .schemas import BlueprintSection, ChapterBlueprint, ChapterDescriptor

logger = logging.getLogger(__name__)

_OUTLINE_MAX_TOKENS = 2000
_BLUEPRINT_MAX_TOKENS = 2500


class LecturePlanner:
    """Turns a topic into an ordered outline, and a chapter into a section blueprint."""

    def __init__(self, client: CompletionClient) -> None:
        self.client = client

    def plan_outline(self, topic: str, total_pages: int) -> List[ChapterDescriptor]:
        raw = self.client.request(
            prompts.outline_prompt(topic, total_pages),
            max_tokens=_OUTLINE_MAX_TOKENS,
        )
        try:
            return coerce_outline(extract_structured(raw))
        except ValueError as exc:
            logger.warning("Outline response unusable (%s); asking for the array only", exc)

        corrected = self.client.request(
            prompts.corrective_outline_prompt(raw),
            max_tokens=_OUTLINE_MAX_TOKENS,
        )
        try:
            return coerce_outline(extract_structured(corrected))
        except ValueError as exc:
            raise PlanningError(f"Could not obtain a chapter outline for '{topic}': {exc}") from exc

    def plan_blueprint(self, title: str, pages: int, description: Optional[str] = None) -> ChapterBlueprint:
        raw = self.client.request(
            prompts.blueprint_prompt(title, pages, description),
            max_tokens=_BLUEPRINT_MAX_TOKENS,
            response_format="json",
        )
        try:
            return coerce_blueprint(extract_structured(raw))
        except ValueError as exc:
            raise BlueprintError(f"Blueprint for '{title}' is malformed: {exc}") from exc


def coerce_outline(value: Any) -> List[ChapterDescriptor]:
    """Validate a parsed outline; raises ValueError describing the first defect."""
    if isinstance(value, dict) and isinstance(value.get("chapters"), list):
        value = value["chapters"]
    if not isinstance(value, list):
        raise ValueError("outline is not a JSON array")
    if not value:
        raise ValueError("outline is empty")

    chapters: List[ChapterDescriptor] = []
    for position, item in enumerate(value, start=1):
        if not isinstance(item, dict):
            raise ValueError(f"outline entry {position} is not an object")
        title = str(item.get("title") or "").strip()
        if not title:
            raise ValueError(f"outline entry {position} is missing a title")
        pages = _to_positive_int(item.get("pages"))
        if pages is None:
            raise ValueError(f"outline entry {position} has an invalid page count: {item.get('pages')!r}")
        description = str(item.get("description") or "").strip() or None
        chapters.append(ChapterDescriptor(title=title, pages=pages, description=description))
    return chapters


def coerce_blueprint(value: Any) -> ChapterBlueprint:
    if not isinstance(value, dict):
        raise ValueError("blueprint is not a JSON object")
    raw_sections = value.get("sections")
    if not isinstance(raw_sections, list) or not raw_sections:
        raise ValueError("blueprint has no sections")

    sections: List[BlueprintSection] = []
    for position, item in enumerate(raw_sections, start=1):
        if not isinstance(item, dict):
            raise ValueError(f"blueprint section {position} is not an object")
        heading = str(item.get("heading") or "").strip()
        if not heading:
            raise ValueError(f"blueprint section {position} is missing a heading")
        sections.append({
            "heading": heading,
            "subsections": _str_list(item.get("subsections")),
            "codeSnippets": _str_list(item.get("codeSnippets", item.get("code_snippets"))),
            "datasets": _str_list(item.get("datasets")),
            "keyTakeaways": _str_list(item.get("keyTakeaways", item.get("key_takeaways"))),
        })
    return {"sections": sections}


def _to_positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not number.is_integer() or number < 1:
        return None
    return int(number)


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if str(v).strip()]
