from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, TypedDict

from django.utils import timezone
from langgraph.errors import GraphRecursionError
from langgraph.graph import END, START, StateGraph

from apps.documents.services.exceptions import PlanningError
from apps.documents.services.pipeline import DocumentWorkflowService, RunProgress, generation_slot
from apps.documents.services.schemas import ChapterDescriptor, GenerationRequest

from ..models import GenerationRun, RunStatus

logger = logging.getLogger(__name__)


class GenerationState(TypedDict, total=False):
    run_id: str
    trace_id: str
    request: GenerationRequest
    use_blueprints: bool | None
    chapters: List[ChapterDescriptor]
    bodies: List[str]
    cursor: int
    document: str
    document_key: str
    progress: RunProgress
    node_timings: Dict[str, int]


class GenerationOrchestrator:
    """
    LangGraph state machine for one document run.

    plan_outline -> expand_chapter (once per chapter, in outline order) -> assemble -> persist.
    Progress is written to the run record at every node boundary.
    """

    def __init__(self, workflow: DocumentWorkflowService | None = None) -> None:
        self.workflow = workflow or DocumentWorkflowService()
        self.graph = self._build_graph()

    def execute(self, run: GenerationRun) -> Dict[str, Any]:
        t0 = time.perf_counter()
        progress = RunProgress()
        state: GenerationState = {
            "run_id": str(run.id),
            "trace_id": str(run.trace_id),
            "request": GenerationRequest(topic=run.topic, total_pages=run.total_pages),
            "use_blueprints": run.use_blueprints,
            "progress": progress,
            "node_timings": {},
        }
        with generation_slot(self.workflow.config.document_key):
            try:
                final_state = self._invoke(state)
            except Exception as exc:
                progress.fail(exc)
                self._persist_run_telemetry(str(run.id), progress)
                logger.warning("Generation run %s failed during %s", run.id, progress.label, exc_info=True)
                raise

        chapters = final_state.get("chapters", [])
        node_timings = final_state.get("node_timings", {})
        return {
            "status": "success",
            "document_key": final_state.get("document_key", ""),
            "chapters": [c.as_dict() for c in chapters],
            "progress": progress.as_dict(),
            "timings_ms": {
                "total_ms": int((time.perf_counter() - t0) * 1000),
                "nodes": {str(k): int(v) for k, v in node_timings.items()},
            },
        }

    def execute_and_record(self, run: GenerationRun) -> Dict[str, Any]:
        """Run ``execute`` while keeping the run's status, output and error fields current."""
        run.status = RunStatus.RUNNING
        run.started_at = timezone.now()
        run.error_message = ""
        run.save(update_fields=["status", "started_at", "error_message"])
        try:
            output = self.execute(run)
        except Exception as exc:
            run.refresh_from_db(fields=["phase", "progress_json", "timings_json"])
            run.status = RunStatus.FAILED
            run.error_message = str(exc)[:2000] or "Generation failed"
            run.finished_at = timezone.now()
            run.save(update_fields=["status", "error_message", "finished_at"])
            raise

        run.refresh_from_db(fields=["phase", "progress_json"])
        run.output_payload = output
        run.timings_json = output.get("timings_ms", {})
        run.status = RunStatus.COMPLETED
        run.finished_at = timezone.now()
        run.save(update_fields=["output_payload", "timings_json", "status", "finished_at"])
        return output

    def _invoke(self, state: GenerationState) -> GenerationState:
        limit = self.workflow.config.max_graph_steps
        try:
            return self.graph.invoke(state, config={"recursion_limit": limit})
        except GraphRecursionError as exc:
            # one step per chapter plus plan, assemble and persist
            raise PlanningError(
                f"Outline has too many chapters to expand within {limit} graph steps "
                f"(GENERATION_MAX_GRAPH_STEPS)"
            ) from exc

    def _build_graph(self):
        graph = StateGraph(GenerationState)
        graph.add_node("plan_outline", self._node_plan_outline)
        graph.add_node("expand_chapter", self._node_expand_chapter)
        graph.add_node("assemble", self._node_assemble)
        graph.add_node("persist", self._node_persist)

        graph.add_edge(START, "plan_outline")
        graph.add_edge("plan_outline", "expand_chapter")
        graph.add_conditional_edges(
            "expand_chapter",
            self._route_after_chapter,
            {
                "expand_chapter": "expand_chapter",
                "assemble": "assemble",
            },
        )
        graph.add_edge("assemble", "persist")
        graph.add_edge("persist", END)
        return graph.compile()

    def _route_after_chapter(self, state: GenerationState) -> str:
        if int(state.get("cursor", 0)) < len(state.get("chapters", [])):
            return "expand_chapter"
        return "assemble"

    def _node_plan_outline(self, state: GenerationState) -> GenerationState:
        t0 = time.perf_counter()
        progress = state["progress"]
        self._persist_run_telemetry(state.get("run_id", ""), progress, state.get("node_timings", {}))

        chapters = self.workflow.plan(state["request"])

        node_timings = self._with_timing(state, "plan_outline", t0)
        progress.chapter_count = len(chapters)
        self._persist_run_telemetry(state.get("run_id", ""), progress, node_timings)
        return {"chapters": chapters, "bodies": [], "cursor": 0, "node_timings": node_timings}

    def _node_expand_chapter(self, state: GenerationState) -> GenerationState:
        t0 = time.perf_counter()
        progress = state["progress"]
        chapters = state.get("chapters", [])
        cursor = int(state.get("cursor", 0))
        chapter = chapters[cursor]

        progress.start_chapter(cursor + 1, len(chapters))
        self._persist_run_telemetry(state.get("run_id", ""), progress, state.get("node_timings", {}))

        body = self.workflow.expand(chapter, use_blueprint=state.get("use_blueprints"))

        progress.complete_chapter(chapter.title)
        node_timings = self._with_timing(state, f"expand_chapter_{cursor + 1}", t0)
        self._persist_run_telemetry(state.get("run_id", ""), progress, node_timings)
        return {
            "bodies": list(state.get("bodies", [])) + [body],
            "cursor": cursor + 1,
            "node_timings": node_timings,
        }

    def _node_assemble(self, state: GenerationState) -> GenerationState:
        t0 = time.perf_counter()
        progress = state["progress"]
        progress.start_assembling()
        self._persist_run_telemetry(state.get("run_id", ""), progress, state.get("node_timings", {}))

        document = self.workflow.assemble(state["request"], state.get("chapters", []), state.get("bodies", []))
        return {"document": document, "node_timings": self._with_timing(state, "assemble", t0)}

    def _node_persist(self, state: GenerationState) -> GenerationState:
        t0 = time.perf_counter()
        progress = state["progress"]
        document_key = self.workflow.persist(state["document"])
        progress.finish()

        node_timings = self._with_timing(state, "persist", t0)
        self._persist_run_telemetry(state.get("run_id", ""), progress, node_timings)
        return {"document_key": document_key, "node_timings": node_timings}

    def _with_timing(self, state: GenerationState, node_name: str, t0: float) -> Dict[str, int]:
        node_timings = dict(state.get("node_timings", {}))
        node_timings[f"{node_name}_ms"] = int((time.perf_counter() - t0) * 1000)
        return node_timings

    def _persist_run_telemetry(
        self,
        run_id: str,
        progress: RunProgress,
        node_timings: Dict[str, int] | None = None,
    ) -> None:
        if not run_id:
            return
        fields: Dict[str, Any] = {"phase": progress.phase.value, "progress_json": progress.as_dict()}
        if node_timings is not None:
            fields["timings_json"] = {"nodes": {str(k): int(v) for k, v in node_timings.items()}}
        try:
            updated = GenerationRun.objects.filter(id=run_id).update(**fields)
            if not updated:
                logger.debug("Run %s not stored; telemetry kept in memory only", run_id)
        except Exception:
            logger.warning("Failed to persist run telemetry", exc_info=True)
