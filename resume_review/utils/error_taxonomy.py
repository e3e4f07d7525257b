from __future__ import annotations

from typing import Any

from resume_review.pipeline.types import FailureStage

FAILURE_MESSAGES: dict[FailureStage, str] = {
    "upload-resume": "Failed to upload file",
    "convert": "Failed to convert PDF to image",
    "upload-image": "Failed to upload image",
    "store-record": "Failed to save resume data",
    "analyze": "Failed to analyze resume",
    "parse": "Failed to read the analysis result",
    "store-feedback": "Failed to save the analysis result",
}

ERROR_STATUS_PREFIX = "Error: "


class ResponseShapeError(ValueError):
    """Raised when an inference response carries no usable text part."""


class FeedbackParseError(ValueError):
    """Raised when feedback text does not decode into the expected object."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


def failure_status_text(stage: FailureStage) -> str:
    return f"{ERROR_STATUS_PREFIX}{FAILURE_MESSAGES[stage]}"


def build_error_details(error: Exception) -> str:
    """Describe a collaborator exception for ``Failed.reason``."""
    details = f"{type(error).__name__}: {error}"
    status_code = extract_http_status_code(error)
    if status_code is not None:
        details += f"\nstatus_code={status_code}"
    body = getattr(error, "body", None)
    if body is not None:
        details += f"\nbody={body}"
    return details


def extract_http_status_code(error: Exception) -> int | None:
    response = getattr(error, "response", None)
    candidates = (
        getattr(error, "status_code", None),
        getattr(error, "status", None),
        getattr(response, "status_code", None),
    )
    for candidate in candidates:
        status_code = _to_int_or_none(candidate)
        if status_code is not None:
            return status_code
    return None


def _to_int_or_none(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
