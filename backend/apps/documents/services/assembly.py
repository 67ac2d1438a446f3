from __future__ import annotations

from typing import List, Sequence

from .schemas import ChapterDescriptor

DEFAULT_BANNER = "This document was generated automatically. Review it before distribution."
SEPARATOR = "---"


def render_table_of_contents(chapters: Sequence[ChapterDescriptor]) -> List[str]:
    return [f"{index}. {chapter.title} ({chapter.pages} pp.)" for index, chapter in enumerate(chapters, start=1)]


def assemble_document(
    title: str,
    chapters: Sequence[ChapterDescriptor],
    bodies: Sequence[str],
    banner: str = DEFAULT_BANNER,
) -> str:
    """Join the title, banner, table of contents and chapter bodies into one markdown string."""
    if len(chapters) != len(bodies):
        raise ValueError("every chapter needs exactly one expanded body")

    blocks: List[str] = [
        f"**{title.strip()}**",
        f"> {banner}",
        "## Table of Contents",
        "\n".join(render_table_of_contents(chapters)),
        SEPARATOR,
    ]
    for chapter, body in zip(chapters, bodies):
        blocks.append(f"# {chapter.title}")
        if body.strip():
            blocks.append(body.strip())
        blocks.append(SEPARATOR)
    return "\n\n".join(blocks) + "\n"
