from __future__ import annotations

from django.http import HttpResponse
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .services.config import get_config
from .services.exceptions import StorageError
from .services.store import DocumentStore


class DocumentDownloadView(APIView):
    """Serve the most recently generated document as a markdown attachment."""

    filename = "lecture.md"

    def get(self, request, *args, **kwargs):
        try:
            document = DocumentStore(get_config()).get()
        except StorageError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        if not document:
            return Response({"detail": "No document has been generated yet."}, status=status.HTTP_404_NOT_FOUND)

        response = HttpResponse(document, content_type="text/markdown; charset=utf-8")
        response["Content-Disposition"] = f'attachment; filename="{self.filename}"'
        return response
