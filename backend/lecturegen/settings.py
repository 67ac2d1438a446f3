from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")
load_dotenv(BASE_DIR.parent / ".env")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-only-insecure-key")
DEBUG = _env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = [h.strip() for h in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h.strip()]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "apps.documents",
    "apps.runs",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
]

ROOT_URLCONF = "lecturegen.urls"
WSGI_APPLICATION = "lecturegen.wsgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.getenv("LECTUREGEN_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
STATIC_URL = "static/"
USE_TZ = True
TIME_ZONE = "UTC"

# ---------------------------------------------------------------------------
# Document store: one Redis-backed cache alias holding the generated document.
# ---------------------------------------------------------------------------
LECTUREGEN_STORE_URL = os.getenv("LECTUREGEN_STORE_URL", os.getenv("REDIS_URL", ""))

CACHES = {
    "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
    "documents": {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": LECTUREGEN_STORE_URL,
        "KEY_PREFIX": "lecturegen",
        "TIMEOUT": None,
    },
}

# ---------------------------------------------------------------------------
# Text-generation backend
# ---------------------------------------------------------------------------
LECTUREGEN_API_KEY = os.getenv("LECTUREGEN_API_KEY", os.getenv("DEEPSEEK_API_KEY", ""))
LECTUREGEN_API_BASE = os.getenv("LECTUREGEN_API_BASE", "https://api.deepseek.com/v1")
LECTUREGEN_MODEL = os.getenv("LECTUREGEN_MODEL", "deepseek-chat")

GENERATION_STORE_ALIAS = "documents"
GENERATION_DOCUMENT_KEY = os.getenv("GENERATION_DOCUMENT_KEY", "lecture:document")
GENERATION_MAX_ATTEMPTS = int(os.getenv("GENERATION_MAX_ATTEMPTS", "6"))
GENERATION_BASE_DELAY = float(os.getenv("GENERATION_BASE_DELAY", "1.0"))
GENERATION_REQUEST_TIMEOUT = float(os.getenv("GENERATION_REQUEST_TIMEOUT", "60"))
GENERATION_TEMPERATURE = float(os.getenv("GENERATION_TEMPERATURE", "0.25"))
GENERATION_MAX_TOKENS = int(os.getenv("GENERATION_MAX_TOKENS", "8000"))
GENERATION_TOKENS_PER_PAGE = int(os.getenv("GENERATION_TOKENS_PER_PAGE", "85"))
GENERATION_WORDS_PER_PAGE = int(os.getenv("GENERATION_WORDS_PER_PAGE", "250"))
GENERATION_USE_BLUEPRINTS = _env_bool("GENERATION_USE_BLUEPRINTS", True)
GENERATION_MAX_GRAPH_STEPS = int(os.getenv("GENERATION_MAX_GRAPH_STEPS", "1000"))

# ---------------------------------------------------------------------------
# REST framework: no authentication, the service is single-tenant.
# ---------------------------------------------------------------------------
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "UNAUTHENTICATED_USER": None,
}

# ---------------------------------------------------------------------------
# Celery
# ---------------------------------------------------------------------------
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", LECTUREGEN_STORE_URL or "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)
CELERY_TASK_ALWAYS_EAGER = _env_bool("CELERY_TASK_ALWAYS_EAGER", False)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL = os.getenv("LECTUREGEN_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "standard"},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "apps": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
    },
}
