from django.apps import AppConfig


class DocumentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.documents"

    def ready(self) -> None:
        from .services.config import GenerationConfig

        # missing credentials or store location abort startup, not a run
        self.generation_config = GenerationConfig.from_settings()
