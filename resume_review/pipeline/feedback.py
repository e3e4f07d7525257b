from __future__ import annotations

import json
from typing import Any, Mapping, Sequence

from jsonschema import Draft202012Validator

from resume_review.llm_client.base import InferenceResponse
from resume_review.utils.error_taxonomy import FeedbackParseError, ResponseShapeError


def extract_feedback_text(response: InferenceResponse) -> str:
    """Return the feedback text of a response.

    Content is either a plain string or a sequence of parts, in which case
    the first part must carry the text.
    """
    content = response.message.content
    if isinstance(content, str):
        return content

    if not isinstance(content, Sequence) or not content:
        raise ResponseShapeError("Inference response content has no parts")

    first_part = content[0]
    text = first_part.get("text") if isinstance(first_part, Mapping) else None
    if not isinstance(text, str):
        raise ResponseShapeError("First inference content part has no text")
    return text


def parse_feedback(
    text: str,
    *,
    schema: dict[str, Any] | None = None,
) -> dict[str, Any]:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as error:
        raise FeedbackParseError(f"Feedback is not valid JSON: {error}") from error

    if not isinstance(parsed, dict):
        raise FeedbackParseError("Feedback JSON root must be an object")

    if schema is not None:
        errors = _validate_schema(parsed_json=parsed, schema=schema)
        if errors:
            raise FeedbackParseError(
                "Feedback failed schema validation: " + "; ".join(errors),
                errors=errors,
            )

    return parsed


def _validate_schema(
    *, parsed_json: dict[str, Any], schema: dict[str, Any]
) -> list[str]:
    validator = Draft202012Validator(schema)
    errors = sorted(
        validator.iter_errors(parsed_json),
        key=lambda item: [str(part) for part in item.path],
    )

    messages: list[str] = []
    for error in errors:
        path = "/".join(str(item) for item in error.path)
        if path:
            messages.append(f"{path}: {error.message}")
        else:
            messages.append(error.message)

    return messages
