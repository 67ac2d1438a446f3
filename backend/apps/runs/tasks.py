from __future__ import annotations

import logging
from typing import Any, Dict

from celery import shared_task

from apps.documents.services.exceptions import GenerationError

from .models import GenerationRun
from .services.orchestration import GenerationOrchestrator

logger = logging.getLogger(__name__)


@shared_task
def execute_generation_run(run_id: str) -> Dict[str, Any]:
    run = GenerationRun.objects.filter(id=run_id).first()
    if not run:
        return {"status": "error", "error": "run_not_found"}

    try:
        GenerationOrchestrator().execute_and_record(run)
    except GenerationError as exc:
        logger.error("Generation run %s failed", run_id, exc_info=True)
        return {"status": "error", "error": str(exc)[:2000]}
    return {"status": "ok", "document_key": run.document_key}
