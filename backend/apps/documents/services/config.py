from __future__ import annotations

from dataclasses import dataclass

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .schemas import MAX_COMPLETION_TOKENS, clamp_tokens


@dataclass(frozen=True)
class GenerationConfig:
    """
    Process-wide generation settings, resolved once from Django settings.

    Instances are handed to every collaborator that needs them instead of
    being read from module globals, so tests can build their own.
    """

    api_key: str
    api_base: str
    model: str
    store_alias: str = "documents"
    document_key: str = "lecture:document"
    max_attempts: int = 6
    base_delay: float = 1.0
    request_timeout: float = 60.0
    temperature: float = 0.25
    max_tokens: int = MAX_COMPLETION_TOKENS
    tokens_per_page: int = 85
    words_per_page: int = 250
    use_blueprints: bool = True
    max_graph_steps: int = 1000

    @classmethod
    def from_settings(cls) -> "GenerationConfig":
        api_key = str(getattr(settings, "LECTUREGEN_API_KEY", "") or "").strip()
        if not api_key:
            raise ImproperlyConfigured("LECTUREGEN_API_KEY must be set")
        api_base = str(getattr(settings, "LECTUREGEN_API_BASE", "") or "").strip()
        if not api_base:
            raise ImproperlyConfigured("LECTUREGEN_API_BASE must be set")

        store_alias = getattr(settings, "GENERATION_STORE_ALIAS", "documents")
        store = getattr(settings, "CACHES", {}).get(store_alias)
        if not store or not str(store.get("LOCATION", "")).strip():
            raise ImproperlyConfigured(
                f"CACHES['{store_alias}'] must define a LOCATION (set LECTUREGEN_STORE_URL)"
            )

        max_attempts = int(getattr(settings, "GENERATION_MAX_ATTEMPTS", 6))
        if max_attempts < 1:
            raise ImproperlyConfigured("GENERATION_MAX_ATTEMPTS must be at least 1")

        return cls(
            api_key=api_key,
            api_base=api_base,
            model=str(getattr(settings, "LECTUREGEN_MODEL", "deepseek-chat")),
            store_alias=store_alias,
            document_key=str(getattr(settings, "GENERATION_DOCUMENT_KEY", "lecture:document")),
            max_attempts=max_attempts,
            base_delay=float(getattr(settings, "GENERATION_BASE_DELAY", 1.0)),
            request_timeout=float(getattr(settings, "GENERATION_REQUEST_TIMEOUT", 60.0)),
            temperature=float(getattr(settings, "GENERATION_TEMPERATURE", 0.25)),
            max_tokens=clamp_tokens(getattr(settings, "GENERATION_MAX_TOKENS", MAX_COMPLETION_TOKENS)),
            tokens_per_page=max(1, int(getattr(settings, "GENERATION_TOKENS_PER_PAGE", 85))),
            words_per_page=max(1, int(getattr(settings, "GENERATION_WORDS_PER_PAGE", 250))),
            use_blueprints=bool(getattr(settings, "GENERATION_USE_BLUEPRINTS", True)),
            max_graph_steps=int(getattr(settings, "GENERATION_MAX_GRAPH_STEPS", 1000)),
        )


def get_config() -> GenerationConfig:
    """The configuration resolved when the documents app booted."""
    from django.apps import apps

    return apps.get_app_config("documents").generation_config
