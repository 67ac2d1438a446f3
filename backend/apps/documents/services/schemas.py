from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Optional, TypedDict

ResponseFormat = Literal["text", "json"]

MIN_COMPLETION_TOKENS = 1
MAX_COMPLETION_TOKENS = 8000


def clamp_tokens(value: int, ceiling: int = MAX_COMPLETION_TOKENS) -> int:
    return max(MIN_COMPLETION_TOKENS, min(int(ceiling), int(value)))


@dataclass(frozen=True)
class GenerationRequest:
    topic: str
    total_pages: int

    def __post_init__(self) -> None:
        if not str(self.topic).strip():
            raise ValueError("topic is required")
        if int(self.total_pages) < 1:
            raise ValueError("total_pages must be a positive integer")


@dataclass
class ChapterDescriptor:
    title: str
    pages: int
    description: Optional[str] = None

    def as_dict(self) -> dict:
        return {"title": self.title, "pages": self.pages, "description": self.description}


class BlueprintSection(TypedDict):
    heading: str
    subsections: List[str]
    codeSnippets: List[str]
    datasets: List[str]
    keyTakeaways: List[str]


class ChapterBlueprint(TypedDict):
    sections: List[BlueprintSection]


@dataclass(frozen=True)
class CompletionRequest:
    system_prompt: str
    user_prompt: Optional[str] = None
    max_tokens: int = MAX_COMPLETION_TOKENS
    temperature: float = 0.25
    response_format: ResponseFormat = "text"

    def __post_init__(self) -> None:
        # frozen: bypass __setattr__ to store the clamped budget
        object.__setattr__(self, "max_tokens", clamp_tokens(self.max_tokens))
        if self.response_format not in ("text", "json"):
            raise ValueError("response_format must be one of: text | json")

    def messages(self) -> List[dict]:
        out = [{"role": "system", "content": self.system_prompt}]
        if self.user_prompt:
            out.append({"role": "user", "content": self.user_prompt})
        return out
