from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from .assembly import assemble_document
from .config import GenerationConfig, get_config
from .exceptions import GenerationInProgressError
from .expansion import ChapterExpander
from .llm import CompletionClient
from .planning import LecturePlanner
from .schemas import ChapterBlueprint, ChapterDescriptor, GenerationRequest
from .store import DocumentStore

logger = logging.getLogger(__name__)


class RunPhase(str, Enum):
    PLANNING = "planning"
    EXPANDING = "expanding"
    ASSEMBLING = "assembling"
    DONE = "done"
    FAILED = "failed"


_TRANSITIONS = {
    RunPhase.PLANNING: {RunPhase.EXPANDING, RunPhase.FAILED},
    RunPhase.EXPANDING: {RunPhase.EXPANDING, RunPhase.ASSEMBLING, RunPhase.FAILED},
    RunPhase.ASSEMBLING: {RunPhase.DONE, RunPhase.FAILED},
    RunPhase.DONE: set(),
    RunPhase.FAILED: set(),
}


@dataclass
class RunProgress:
    """
    Inspectable position of a run: planning -> expanding(i) -> assembling -> done | failed.

    ``chapter_index`` is 1-based and only meaningful while expanding.
    """

    phase: RunPhase = RunPhase.PLANNING
    chapter_index: int = 0
    chapter_count: int = 0
    completed_chapters: List[str] = field(default_factory=list)
    last_error: str = ""

    def _move(self, phase: RunPhase) -> None:
        if phase not in _TRANSITIONS[self.phase]:
            raise ValueError(f"invalid run transition {self.phase.value} -> {phase.value}")
        self.phase = phase

    def start_chapter(self, index: int, chapter_count: int) -> None:
        self._move(RunPhase.EXPANDING)
        self.chapter_index = index
        self.chapter_count = chapter_count

    def complete_chapter(self, title: str) -> None:
        self.completed_chapters.append(title)

    def start_assembling(self) -> None:
        self._move(RunPhase.ASSEMBLING)

    def finish(self) -> None:
        self._move(RunPhase.DONE)

    def fail(self, error: BaseException) -> None:
        if self.phase in (RunPhase.DONE, RunPhase.FAILED):
            return
        self.phase = RunPhase.FAILED
        self.last_error = str(error)[:500]

    @property
    def label(self) -> str:
        if self.phase is RunPhase.EXPANDING:
            return f"{self.phase.value}({self.chapter_index})"
        return self.phase.value

    def as_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "label": self.label,
            "chapter_index": self.chapter_index,
            "chapter_count": self.chapter_count,
            "completed_chapters": list(self.completed_chapters),
            "last_error": self.last_error,
        }


_inflight_lock = threading.Lock()
_inflight_keys: set = set()


@contextmanager
def generation_slot(document_key: str) -> Iterator[None]:
    """Reserve ``document_key`` for one run; overlapping runs are rejected, not queued."""
    with _inflight_lock:
        if document_key in _inflight_keys:
            raise GenerationInProgressError(document_key)
        _inflight_keys.add(document_key)
    try:
        yield
    finally:
        with _inflight_lock:
            _inflight_keys.discard(document_key)


def generation_in_progress(document_key: str) -> bool:
    with _inflight_lock:
        return document_key in _inflight_keys


class DocumentWorkflowService:
    """Pipeline stages for one document: plan, (blueprint), expand, assemble, persist."""

    def __init__(
        self,
        config: GenerationConfig | None = None,
        client: CompletionClient | None = None,
        store: DocumentStore | None = None,
    ) -> None:
        self.config = config or get_config()
        self.client = client or CompletionClient(self.config)
        self.planner = LecturePlanner(self.client)
        self.expander = ChapterExpander(self.client)
        self.store = store or DocumentStore(self.config)

    def plan(self, request: GenerationRequest) -> List[ChapterDescriptor]:
        chapters = self.planner.plan_outline(request.topic, request.total_pages)
        planned_pages = sum(c.pages for c in chapters)
        if planned_pages != request.total_pages:
            logger.info(
                "Outline for '%s' plans %d pages against a budget of %d",
                request.topic,
                planned_pages,
                request.total_pages,
            )
        return chapters

    def expand(self, chapter: ChapterDescriptor, use_blueprint: Optional[bool] = None) -> str:
        if use_blueprint is None:
            use_blueprint = self.config.use_blueprints
        blueprint: Optional[ChapterBlueprint] = None
        if use_blueprint:
            self.expander.ensure_description(chapter)
            blueprint = self.planner.plan_blueprint(chapter.title, chapter.pages, chapter.description)
        return self.expander.expand_chapter(chapter, blueprint)

    def assemble(self, request: GenerationRequest, chapters: List[ChapterDescriptor], bodies: List[str]) -> str:
        return assemble_document(request.topic, chapters, bodies)

    def persist(self, document: str) -> str:
        self.store.set(document)
        return self.store.key

    def load(self) -> Optional[str]:
        return self.store.get()
