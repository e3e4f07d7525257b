from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

ContentPart = dict[str, Any]


@dataclass(frozen=True, slots=True)
class InferenceMessage:
    content: str | Sequence[ContentPart]


@dataclass(frozen=True, slots=True)
class InferenceResponse:
    message: InferenceMessage
    raw_response: dict[str, Any] = field(default_factory=dict)
    timings: dict[str, float] = field(default_factory=dict)


class InferenceClient(Protocol):
    async def feedback(
        self,
        document_path: str,
        instructions: str,
    ) -> InferenceResponse | None: ...
