from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from . import prompts
from .exceptions import BackendError, ExpansionError
from .llm import CompletionClient
from .schemas import ChapterBlueprint, ChapterDescriptor, clamp_tokens

logger = logging.getLogger(__name__)

_DESCRIPTION_MAX_TOKENS = 200


@contextmanager
def _expansion_failure(descriptor: ChapterDescriptor) -> Iterator[None]:
    try:
        yield
    except BackendError as exc:
        raise ExpansionError(
            f"Expansion of '{descriptor.title}' failed: {exc}",
            chapter_title=descriptor.title,
            cause=exc,
        ) from exc


class ChapterExpander:
    def __init__(self, client: CompletionClient) -> None:
        self.client = client
        self.config = client.config

    def token_budget(self, pages: int) -> int:
        """Completion ceiling for a chapter, proportional to its pages."""
        return clamp_tokens(max(1, int(pages)) * self.config.tokens_per_page, self.config.max_tokens)

    def target_words(self, pages: int) -> int:
        return max(1, int(pages)) * self.config.words_per_page

    def ensure_description(self, descriptor: ChapterDescriptor) -> str:
        """Backfill a missing description; a descriptor is only ever filled once."""
        if not descriptor.description:
            logger.info("Synthesising missing description for '%s'", descriptor.title)
            with _expansion_failure(descriptor):
                descriptor.description = self.client.request(
                    prompts.description_prompt(descriptor.title),
                    max_tokens=_DESCRIPTION_MAX_TOKENS,
                ).strip()
        return descriptor.description

    def expand_chapter(self, descriptor: ChapterDescriptor, blueprint: Optional[ChapterBlueprint] = None) -> str:
        self.ensure_description(descriptor)
        with _expansion_failure(descriptor):
            return self.client.request(
                prompts.expansion_prompt(
                    title=descriptor.title,
                    pages=descriptor.pages,
                    target_words=self.target_words(descriptor.pages),
                    description=descriptor.description,
                    blueprint=blueprint,
                ),
                max_tokens=self.token_budget(descriptor.pages),
            )
