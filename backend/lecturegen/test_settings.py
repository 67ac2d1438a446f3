from .settings import *  # noqa: F401,F403

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
    "documents": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "lecturegen-tests",
        "TIMEOUT": None,
    },
}

LECTUREGEN_API_KEY = "test-key"
LECTUREGEN_API_BASE = "http://backend.invalid/v1"
GENERATION_BASE_DELAY = 0.0
GENERATION_MAX_ATTEMPTS = 3
GENERATION_USE_BLUEPRINTS = False

CELERY_TASK_ALWAYS_EAGER = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {"null": {"class": "logging.NullHandler"}},
    "root": {"handlers": ["null"]},
}
