from __future__ import annotations

import uuid

from django.db import models


class RunStatus(models.TextChoices):
    QUEUED = "queued", "Queued"
    RUNNING = "running", "Running"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class RunPhaseChoice(models.TextChoices):
    PLANNING = "planning", "Planning"
    EXPANDING = "expanding", "Expanding"
    ASSEMBLING = "assembling", "Assembling"
    DONE = "done", "Done"
    FAILED = "failed", "Failed"


class GenerationRun(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    trace_id = models.UUIDField(default=uuid.uuid4, editable=False, db_index=True)
    document_key = models.CharField(max_length=120)

    topic = models.CharField(max_length=300)
    total_pages = models.PositiveIntegerField()
    use_blueprints = models.BooleanField(null=True, blank=True)

    status = models.CharField(max_length=16, choices=RunStatus.choices, default=RunStatus.QUEUED)
    phase = models.CharField(max_length=16, choices=RunPhaseChoice.choices, blank=True, default="")

    progress_json = models.JSONField(default=dict, blank=True)
    output_payload = models.JSONField(default=dict, blank=True)
    timings_json = models.JSONField(default=dict, blank=True)
    error_message = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    started_at = models.DateTimeField(null=True, blank=True)
    finished_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="runs_status_created_idx"),
            models.Index(fields=["document_key", "created_at"], name="runs_doc_key_created_idx"),
        ]

    def __str__(self) -> str:
        return f"'{self.topic}' ({self.total_pages} pp., {self.status})"
