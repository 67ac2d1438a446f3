from django.contrib import admin

from .models import GenerationRun


@admin.register(GenerationRun)
class GenerationRunAdmin(admin.ModelAdmin):
    list_display = ("id", "topic", "total_pages", "status", "phase", "created_at", "finished_at")
    list_filter = ("status", "phase")
    search_fields = ("topic", "error_message")
