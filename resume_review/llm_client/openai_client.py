from __future__ import annotations

import base64
import mimetypes
import time
from pathlib import PurePosixPath
from typing import Any, Iterator, Protocol

from resume_review.llm_client.base import InferenceMessage, InferenceResponse


class OpenAIResponsesService(Protocol):
    async def create(self, **kwargs: Any) -> Any: ...


class DocumentReader(Protocol):
    async def read(self, path: str) -> bytes: ...


class OpenAIInferenceClient:
    def __init__(
        self,
        *,
        document_reader: DocumentReader,
        model: str,
        api_key: str | None = None,
        responses_service: OpenAIResponsesService | None = None,
        params: dict[str, Any] | None = None,
    ) -> None:
        self._document_reader = document_reader
        self._model = model
        self._api_key = api_key
        self._responses_service = responses_service
        self._params = params or {}

    async def feedback(
        self,
        document_path: str,
        instructions: str,
    ) -> InferenceResponse | None:
        service = self._resolve_service()
        document_bytes = await self._document_reader.read(document_path)
        payload = self.build_request_payload(
            document_name=PurePosixPath(document_path).name,
            document_bytes=document_bytes,
            instructions=instructions,
            model=self._model,
            params=self._params,
        )

        start_time = time.perf_counter()
        response = await service.create(**payload)
        elapsed_ms = (time.perf_counter() - start_time) * 1000

        response_payload = _to_dict(response)
        parts = _extract_output_parts(response=response, payload=response_payload)
        if not parts:
            return None

        return InferenceResponse(
            message=InferenceMessage(content=parts),
            raw_response=response_payload,
            timings={"t_llm_total_ms": elapsed_ms},
        )

    @staticmethod
    def build_request_payload(
        *,
        document_name: str,
        document_bytes: bytes,
        instructions: str,
        model: str,
        params: dict[str, Any],
    ) -> dict[str, Any]:
        mime_type = mimetypes.guess_type(document_name)[0] or "application/pdf"
        encoded = base64.b64encode(document_bytes).decode("ascii")
        payload: dict[str, Any] = {
            "model": model,
            "input": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "input_file",
                            "filename": document_name,
                            "file_data": f"data:{mime_type};base64,{encoded}",
                        },
                        {"type": "input_text", "text": instructions},
                    ],
                },
            ],
            "tools": [],
            "tool_choice": "none",
        }

        payload.update(_response_options(params))
        return payload

    def _resolve_service(self) -> OpenAIResponsesService:
        if self._responses_service is None:
            if not self._api_key:
                raise ValueError(
                    "OpenAI API key is required when service is not injected"
                )
            from openai import AsyncOpenAI

            self._responses_service = AsyncOpenAI(api_key=self._api_key).responses
        return self._responses_service


def _response_options(params: dict[str, Any]) -> dict[str, Any]:
    options: dict[str, Any] = {}

    effort = params.get("reasoning_effort")
    # "auto" leaves the choice to the model
    if effort in ("low", "medium", "high"):
        options["reasoning"] = {"effort": effort}
    if params.get("temperature") is not None:
        options["temperature"] = params["temperature"]
    if params.get("max_output_tokens") is not None:
        options["max_output_tokens"] = int(params["max_output_tokens"])
    return options


def _extract_output_parts(
    *, response: Any, payload: dict[str, Any]
) -> list[dict[str, Any]]:
    parts = [
        {"type": "output_text", "text": part["text"]}
        for part in _iter_content_parts(payload.get("output"))
        if part.get("type", "output_text") == "output_text"
        and _has_text(part.get("text"))
    ]
    if parts:
        return parts

    # SDK objects expose the joined text even when the dump has no parts
    for fallback in (getattr(response, "output_text", None), payload.get("output_text")):
        if _has_text(fallback):
            return [{"type": "output_text", "text": fallback}]
    return []


def _iter_content_parts(output: Any) -> Iterator[dict[str, Any]]:
    if not isinstance(output, list):
        return
    for item in output:
        content = item.get("content") if isinstance(item, dict) else None
        if isinstance(content, list):
            yield from (part for part in content if isinstance(part, dict))


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _to_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    if hasattr(value, "model_dump"):
        dumped = value.model_dump()
        return dumped if isinstance(dumped, dict) else {}
    return {}
