from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

from openai import OpenAI, OpenAIError

from .config import GenerationConfig
from .exceptions import BackendError
from .schemas import CompletionRequest, clamp_tokens

logger = logging.getLogger(__name__)

T = TypeVar("T")

AttemptHook = Callable[[int, float, Optional[BaseException]], None]


class MalformedResponseError(Exception):
    """The backend answered 2xx but the body carried no completion text."""


@dataclass(frozen=True)
class RetryPolicy:
    """
    Exponential backoff around a single-attempt callable.

    The delay between attempt k and k+1 is ``base_delay * 2 ** (k - 1)``.
    ``sleep`` is injectable so tests can run the policy against a fake clock.
    """

    max_attempts: int = 6
    base_delay: float = 1.0
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * (2 ** (max(1, attempt) - 1))

    def call(
        self,
        fn: Callable[[], T],
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
        on_attempt: AttemptHook | None = None,
    ) -> T:
        last_exc: BaseException | None = None
        for attempt in range(1, self.max_attempts + 1):
            t0 = time.perf_counter()
            try:
                result = fn()
            except retry_on as exc:
                last_exc = exc
                if on_attempt:
                    on_attempt(attempt, time.perf_counter() - t0, exc)
                if attempt < self.max_attempts:
                    self.sleep(self.delay_for(attempt))
                continue
            if on_attempt:
                on_attempt(attempt, time.perf_counter() - t0, None)
            return result

        raise BackendError(
            f"Backend call failed after {self.max_attempts} attempt(s): {last_exc}",
            cause=last_exc,
            attempts=self.max_attempts,
        ) from last_exc


class CompletionClient:
    """
    Chat-completion adapter for an OpenAI-compatible backend.

    Each attempt is one HTTP request; retries and backoff belong to the
    ``RetryPolicy`` so the SDK's own retry loop is switched off.
    """

    def __init__(
        self,
        config: GenerationConfig,
        client: Any = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.config = config
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=config.max_attempts,
            base_delay=config.base_delay,
        )
        self._client = client or OpenAI(
            api_key=config.api_key,
            base_url=config.api_base,
            timeout=config.request_timeout,
            max_retries=0,
        )

    def complete(self, request: CompletionRequest) -> str:
        return self.retry_policy.call(
            lambda: self._attempt(request),
            retry_on=(OpenAIError, MalformedResponseError),
            on_attempt=self._log_attempt,
        )

    def request(
        self,
        system_prompt: str,
        user_prompt: str | None = None,
        *,
        max_tokens: int | None = None,
        response_format: str = "text",
    ) -> str:
        return self.complete(
            CompletionRequest(
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                max_tokens=clamp_tokens(max_tokens or self.config.max_tokens, self.config.max_tokens),
                temperature=self.config.temperature,
                response_format=response_format,  # type: ignore[arg-type]
            )
        )

    def _attempt(self, request: CompletionRequest) -> str:
        kwargs: dict = {
            "model": self.config.model,
            "messages": request.messages(),
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        }
        if request.response_format == "json":
            kwargs["response_format"] = {"type": "json_object"}

        response = self._client.chat.completions.create(**kwargs)
        choices = getattr(response, "choices", None) or []
        if not choices:
            raise MalformedResponseError("completion response has no choices")
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None) if message is not None else None
        if not isinstance(content, str) or not content.strip():
            raise MalformedResponseError("completion response has empty content")
        if getattr(choices[0], "finish_reason", None) == "length":
            logger.warning(
                "Completion truncated at max_tokens=%d: %s",
                request.max_tokens,
                _prompt_excerpt(request.system_prompt),
            )
        return content

    def _log_attempt(self, attempt: int, elapsed: float, error: BaseException | None) -> None:
        latency_ms = int(elapsed * 1000)
        if error is None:
            logger.info("Backend call succeeded (attempt %d, %d ms)", attempt, latency_ms)
            return
        logger.warning(
            "Backend call failed (attempt %d/%d, %d ms): %s",
            attempt,
            self.retry_policy.max_attempts,
            latency_ms,
            error,
            exc_info=True,
        )


def _prompt_excerpt(prompt: str, limit: int = 120) -> str:
    """The task line of a system prompt, which names the chapter being written."""
    task = prompt.split("TASK:", 1)[-1].strip()
    return task.splitlines()[0][:limit] if task else ""
