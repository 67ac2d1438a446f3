from __future__ import annotations


class GenerationError(Exception):
    """Base class for every failure that aborts a generation run."""


class BackendError(GenerationError):
    """The text-generation backend failed on every attempt."""

    def __init__(self, message: str, cause: BaseException | None = None, attempts: int = 0) -> None:
        super().__init__(message)
        self.cause = cause
        self.attempts = attempts


class PlanningError(GenerationError):
    """No usable outline after the corrective follow-up request."""


class BlueprintError(GenerationError):
    """The chapter blueprint came back without a usable `sections` list."""


class ExpansionError(GenerationError):
    """A backend failure interrupted expansion of a chapter."""

    def __init__(self, message: str, chapter_title: str = "", cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.chapter_title = chapter_title
        self.cause = cause


class StorageError(GenerationError):
    """The key-value store holding the document is unreachable."""


class GenerationInProgressError(GenerationError):
    """Another run is already writing the same document key."""

    def __init__(self, document_key: str) -> None:
        super().__init__(f"A generation run for '{document_key}' is already in progress")
        self.document_key = document_key
