from __future__ import annotations

import json
from dataclasses import dataclass, replace
from typing import Any, Literal

FieldName = Literal["companyName", "jobTitle", "jobDescription", "file"]
ValidationErrors = dict[FieldName, str]

PipelineState = Literal[
    "idle",
    "uploading_document",
    "converting_to_image",
    "uploading_image",
    "preparing_record",
    "analyzing",
    "complete",
    "failed",
]

FailureStage = Literal[
    "upload-resume",
    "convert",
    "upload-image",
    "store-record",
    "analyze",
    "parse",
    "store-feedback",
]


@dataclass(frozen=True, slots=True)
class UploadFile:
    filename: str
    content: bytes
    content_type: str = "application/pdf"


@dataclass(frozen=True, slots=True)
class SubmissionRequest:
    company_name: str
    job_title: str
    job_description: str
    file: UploadFile | None

    def normalized(self) -> SubmissionRequest:
        return replace(
            self,
            company_name=(self.company_name or "").strip(),
            job_title=(self.job_title or "").strip(),
            job_description=(self.job_description or "").strip(),
        )


@dataclass(frozen=True, slots=True)
class SubmissionRecord:
    """Persisted submission; rebuilt, never mutated, between stages."""

    id: str
    resume_path: str
    image_path: str
    company_name: str
    job_title: str
    job_description: str
    feedback: dict[str, Any] | None = None

    @property
    def is_pending(self) -> bool:
        return self.feedback is None

    def with_feedback(self, feedback: dict[str, Any]) -> SubmissionRecord:
        return replace(self, feedback=feedback)

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "resumePath": self.resume_path,
            "imagePath": self.image_path,
            "companyName": self.company_name,
            "jobTitle": self.job_title,
            "jobDescription": self.job_description,
            "feedback": "" if self.feedback is None else self.feedback,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str) -> SubmissionRecord:
        payload = json.loads(raw)
        if not isinstance(payload, dict):
            raise ValueError("Submission record root must be an object")

        feedback = payload.get("feedback")
        if feedback == "":
            feedback = None
        if feedback is not None and not isinstance(feedback, dict):
            raise ValueError("Submission record feedback must be an object")

        return cls(
            id=str(payload["id"]),
            resume_path=str(payload["resumePath"]),
            image_path=str(payload["imagePath"]),
            company_name=str(payload["companyName"]),
            job_title=str(payload["jobTitle"]),
            job_description=str(payload["jobDescription"]),
            feedback=feedback,
        )


@dataclass(frozen=True, slots=True)
class PipelineStatus:
    state: PipelineState
    text: str

    @property
    def is_error(self) -> bool:
        return self.state == "failed"


@dataclass(frozen=True, slots=True)
class Complete:
    record: SubmissionRecord


@dataclass(frozen=True, slots=True)
class Failed:
    stage: FailureStage
    reason: str
    record: SubmissionRecord | None = None


SubmissionOutcome = Complete | Failed
