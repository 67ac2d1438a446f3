from __future__ import annotations

import json
from typing import Optional

from .schemas import ChapterBlueprint

# ---------------------------------------------------------------------------
# Shared prompt fragments. Schemas are kept as module-level constants so the
# planner, the corrective follow-up and the tests all read the same text.
# ---------------------------------------------------------------------------

_OUTLINE_SCHEMA = """[
  {
    "title": "<chapter title, prefixed 'Chapter N: '>",
    "pages": <int >= 1>,
    "description": "<optional: 1-2 sentences on what the chapter covers>"
  }
]"""

_BLUEPRINT_SCHEMA = """{
  "sections": [
    {
      "heading": "<section heading>",
      "subsections": ["<subsection heading>"],
      "codeSnippets": ["<short description of a code example to include>"],
      "datasets": ["<dataset or worked-data placeholder to reference>"],
      "keyTakeaways": ["<one-line takeaway>"]
    }
  ]
}"""

_ARRAY_RULE = (
    "OUTPUT RULE: Return a single valid JSON array. No markdown fences, "
    "no prose before or after, no trailing commas, no comments."
)

_OBJECT_RULE = (
    "OUTPUT RULE: Return a single valid JSON object. No markdown fences, "
    "no prose before or after, no trailing commas, no comments."
)

_OUTLINE_GUIDELINES = (
    "- Chapters must appear in reading order, each building on the previous ones.\n"
    "- Page counts are whole numbers of at least 1 and should add up to the total page budget.\n"
    "- Longer chapters go to the central, denser material; openings and closings stay short.\n"
    "- Titles are specific to the content, never just 'Chapter 3'."
)

_CHAPTER_GUIDELINES = (
    "- Write in markdown. Use ## for sections and ### for subsections; never use a single #.\n"
    "- Do not repeat the chapter title as a heading; it is added when the document is assembled.\n"
    "- Explain concepts progressively, with concrete examples where they help.\n"
    "- Use fenced code blocks for code and markdown tables for tabular data.\n"
    "- Return the chapter text only, with no preamble or closing remarks."
)


def build_system_prompt(role: str, task: str, schema: str = "", rule: str = "") -> str:
    """
    Assemble a system prompt with a consistent layout:
    role identity, then the task, then the output schema and its rule last.
    """
    parts = [f"ROLE: {role}", f"TASK: {task}"]
    if schema:
        parts.append(f"OUTPUT SCHEMA:\n{schema}")
    if rule:
        parts.append(rule)
    return "\n\n".join(parts)


def outline_prompt(topic: str, total_pages: int) -> str:
    return build_system_prompt(
        role="You are an expert lecturer who designs clear, well-paced long-form course material.",
        task=(
            f"Produce the table of contents for a {total_pages}-page lecture on '{topic}'. "
            f"Split the material into chapters whose page counts are proportional to "
            f"their weight and sum to roughly {total_pages} pages."
        ),
        schema=_OUTLINE_SCHEMA,
        rule=_join(_section("Structural Guidelines", _OUTLINE_GUIDELINES), _ARRAY_RULE),
    )


def corrective_outline_prompt(previous_response: str) -> str:
    return (
        "Extract and return only the JSON array from the following text, "
        "keeping every chapter's title, pages and description. "
        f"{_ARRAY_RULE}\n\n{previous_response}"
    )


def blueprint_prompt(title: str, pages: int, description: Optional[str]) -> str:
    return build_system_prompt(
        role="You are a chapter strategist who turns chapter briefs into execution-ready outlines.",
        task=_join(
            f"Design the section outline for the chapter '{title}' ({pages} pages).",
            f"Chapter summary: {description}" if description else "",
            "Give each section its subsections, suggested code examples, dataset placeholders "
            "and key takeaways. Leave a list empty when it does not apply.",
        ),
        schema=_BLUEPRINT_SCHEMA,
        rule=_OBJECT_RULE,
    )


def description_prompt(title: str) -> str:
    return build_system_prompt(
        role="You are an expert lecturer.",
        task=f"Write a 2-sentence description of the chapter '{title}'. Return the two sentences only.",
    )


def expansion_prompt(
    title: str,
    pages: int,
    target_words: int,
    description: Optional[str],
    blueprint: Optional[ChapterBlueprint],
) -> str:
    blueprint_block = ""
    if blueprint:
        blueprint_block = _join(
            _section("Chapter Blueprint", json.dumps(blueprint, ensure_ascii=False, indent=2)),
            "Follow the blueprint's heading hierarchy exactly: one ## section per blueprint section, "
            "one ### subsection per listed subsection, in the same order. "
            "Do not introduce new top-level sections.",
        )
    return build_system_prompt(
        role="You are an expert lecturer writing one chapter of a long-form lecture.",
        task=_join(
            f"Write the full text of the chapter '{title}'.",
            f"Page budget: {pages} page(s), about {target_words} words.",
            _section("Chapter Description", description or ""),
            blueprint_block,
            _section("Writing Guidelines", _CHAPTER_GUIDELINES),
        ),
    )


def _section(heading: str, body: str) -> str:
    """Wrap a block of text with a heading; omit it if the body is empty."""
    body = body.strip()
    return f"### {heading}\n{body}" if body else ""


def _join(*parts: str) -> str:
    return "\n\n".join(p for p in parts if p and p.strip())
