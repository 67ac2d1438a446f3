from __future__ import annotations

import logging
from typing import Optional

from django.core.cache import caches
from redis.exceptions import RedisError

from .config import GenerationConfig
from .exceptions import StorageError

logger = logging.getLogger(__name__)

_STORE_ERRORS = (RedisError, OSError)


class DocumentStore:
    """
    Key-value persistence for the assembled document.

    Backed by a Django cache alias (Redis in deployment). Values never
    expire; a new successful run overwrites the previous document.
    """

    def __init__(self, config: GenerationConfig) -> None:
        self.config = config
        self.key = config.document_key

    @property
    def backend(self):
        return caches[self.config.store_alias]

    def set(self, value: str, key: str | None = None) -> None:
        try:
            self.backend.set(key or self.key, value, timeout=None)
        except _STORE_ERRORS as exc:
            logger.warning("Document store write failed", exc_info=True)
            raise StorageError(f"Document store unavailable: {exc}") from exc

    def get(self, key: str | None = None) -> Optional[str]:
        try:
            return self.backend.get(key or self.key)
        except _STORE_ERRORS as exc:
            logger.warning("Document store read failed", exc_info=True)
            raise StorageError(f"Document store unavailable: {exc}") from exc
