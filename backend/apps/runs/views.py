from __future__ import annotations

from typing import Any, Dict

from rest_framework import mixins, status, viewsets
from rest_framework.response import Response

from apps.documents.services.config import get_config
from apps.documents.services.exceptions import GenerationError, GenerationInProgressError
from apps.documents.services.pipeline import generation_in_progress

from .models import GenerationRun, RunStatus
from .serializers import GenerationRunCreateSerializer, GenerationRunSerializer
from .services.orchestration import GenerationOrchestrator
from .tasks import execute_generation_run


class GenerationRunViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    queryset = GenerationRun.objects.all()
    serializer_class = GenerationRunSerializer

    def create(self, request, *args, **kwargs):
        create_serializer = GenerationRunCreateSerializer(data=_request_params(request))
        create_serializer.is_valid(raise_exception=True)
        validated = create_serializer.validated_data

        document_key = get_config().document_key
        if generation_in_progress(document_key) or _has_active_run(document_key):
            return Response(
                {"detail": str(GenerationInProgressError(document_key))},
                status=status.HTTP_409_CONFLICT,
            )

        run = GenerationRun.objects.create(
            document_key=document_key,
            topic=validated["topic"],
            total_pages=validated["total_pages"],
            use_blueprints=validated.get("use_blueprints"),
            status=RunStatus.QUEUED,
        )

        run_async = str(request.query_params.get("async", "0")).lower() in {"1", "true", "yes"}
        if run_async:
            execute_generation_run.delay(str(run.id))
            return Response(GenerationRunSerializer(run).data, status=status.HTTP_202_ACCEPTED)

        try:
            GenerationOrchestrator().execute_and_record(run)
        except GenerationInProgressError as exc:
            return Response({"detail": str(exc), "run": GenerationRunSerializer(run).data}, status=status.HTTP_409_CONFLICT)
        except GenerationError as exc:
            return Response(
                {"detail": str(exc), "run": GenerationRunSerializer(run).data},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return Response(GenerationRunSerializer(run).data, status=status.HTTP_201_CREATED)


def _has_active_run(document_key: str) -> bool:
    """A queued or running record means a worker process may be writing this key."""
    return GenerationRun.objects.filter(
        document_key=document_key,
        status__in=[RunStatus.QUEUED, RunStatus.RUNNING],
    ).exists()

def _request_params(request) -> Dict[str, Any]:
    """Merge query-string and body parameters; the body wins on conflicts."""
    params: Dict[str, Any] = dict(request.query_params.items())
    params.pop("async", None)
    body = request.data
    if hasattr(body, "items"):
        params.update(dict(body.items()))
    return params
