from __future__ import annotations

from rest_framework import serializers

from .models import GenerationRun


class GenerationRunSerializer(serializers.ModelSerializer):
    class Meta:
        model = GenerationRun
        fields = [
            "id",
            "trace_id",
            "document_key",
            "topic",
            "total_pages",
            "use_blueprints",
            "status",
            "phase",
            "progress_json",
            "output_payload",
            "timings_json",
            "error_message",
            "created_at",
            "started_at",
            "finished_at",
        ]
        read_only_fields = fields


class GenerationRunCreateSerializer(serializers.Serializer):
    topic = serializers.CharField(max_length=300, trim_whitespace=True)
    totalPages = serializers.IntegerField(min_value=1, max_value=2000, source="total_pages")
    blueprints = serializers.BooleanField(required=False, allow_null=True, default=None, source="use_blueprints")

    def validate_topic(self, value):
        if not value.strip():
            raise serializers.ValidationError("topic is required")
        return value.strip()
