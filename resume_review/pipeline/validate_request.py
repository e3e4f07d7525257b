from __future__ import annotations

from resume_review.pipeline.types import SubmissionRequest, ValidationErrors

COMPANY_NAME_MIN_LENGTH = 2
COMPANY_NAME_MAX_LENGTH = 200
JOB_TITLE_MIN_LENGTH = 2
JOB_TITLE_MAX_LENGTH = 100
JOB_DESCRIPTION_MIN_LENGTH = 20


def validate_request(request: SubmissionRequest) -> ValidationErrors:
    """Collect every field violation of a submission request.

    Fields are checked independently so the caller can show all problems at
    once. An empty mapping means the request may enter the pipeline.
    """
    normalized = request.normalized()
    errors: ValidationErrors = {}

    company_name_error = _validate_text(
        normalized.company_name,
        label="Company name",
        min_length=COMPANY_NAME_MIN_LENGTH,
        max_length=COMPANY_NAME_MAX_LENGTH,
    )
    if company_name_error is not None:
        errors["companyName"] = company_name_error

    job_title_error = _validate_text(
        normalized.job_title,
        label="Job title",
        min_length=JOB_TITLE_MIN_LENGTH,
        max_length=JOB_TITLE_MAX_LENGTH,
    )
    if job_title_error is not None:
        errors["jobTitle"] = job_title_error

    job_description_error = _validate_text(
        normalized.job_description,
        label="Job description",
        min_length=JOB_DESCRIPTION_MIN_LENGTH,
        max_length=None,
    )
    if job_description_error is not None:
        errors["jobDescription"] = job_description_error

    if normalized.file is None:
        errors["file"] = "Resume file is required."

    return errors


def _validate_text(
    value: str,
    *,
    label: str,
    min_length: int,
    max_length: int | None,
) -> str | None:
    if not value:
        return f"{label} is required."
    if len(value) < min_length:
        return f"{label} must be at least {min_length} characters."
    if max_length is not None and len(value) > max_length:
        return f"{label} must be less than {max_length} characters."
    return None
