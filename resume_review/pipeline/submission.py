from __future__ import annotations

import time
from typing import Any, Awaitable, Callable, TypeVar

from resume_review.llm_client.base import InferenceClient, InferenceResponse
from resume_review.pipeline.feedback import extract_feedback_text, parse_feedback
from resume_review.pipeline.ids import new_submission_id
from resume_review.pipeline.types import (
    Complete,
    Failed,
    FailureStage,
    PipelineState,
    PipelineStatus,
    SubmissionOutcome,
    SubmissionRecord,
    SubmissionRequest,
    UploadFile,
)
from resume_review.pipeline.validate_request import validate_request
from resume_review.render.pdf_renderer import DocumentRenderer
from resume_review.storage.documents import DocumentStore, UploadedFile
from resume_review.storage.records import DEFAULT_KEY_PREFIX, RecordStore, record_key
from resume_review.utils.error_taxonomy import (
    FAILURE_MESSAGES,
    build_error_details,
    failure_status_text,
)
from resume_review.utils.logging import (
    clear_log_context,
    get_logger,
    scoped_log_context,
    set_log_context,
)

T = TypeVar("T")

StatusCallback = Callable[[PipelineStatus], None]
InstructionsBuilder = Callable[[str, str], str]

STATUS_MESSAGES: dict[PipelineState, str] = {
    "uploading_document": "Uploading the file...",
    "converting_to_image": "Converting to image...",
    "uploading_image": "Uploading the image...",
    "preparing_record": "Preparing data...",
    "analyzing": "Analyzing...",
    "complete": "Analysis complete, redirecting...",
}

logger = get_logger("pipeline")


class SubmissionPipeline:
    """Drives one résumé submission from upload to stored feedback.

    Stages run strictly in order and the first failing stage ends the run
    with a ``Failed`` outcome. Nothing already uploaded or written is rolled
    back: a record stored before analysis keeps its empty feedback.

    The pipeline holds no per-run state, so concurrent ``run`` calls on one
    instance are independent of each other.
    """

    def __init__(
        self,
        *,
        document_store: DocumentStore,
        renderer: DocumentRenderer,
        record_store: RecordStore,
        inference_client: InferenceClient,
        instructions_builder: InstructionsBuilder,
        feedback_schema: dict[str, Any] | None = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        id_factory: Callable[[], str] = new_submission_id,
    ) -> None:
        self.document_store = document_store
        self.renderer = renderer
        self.record_store = record_store
        self.inference_client = inference_client
        self.instructions_builder = instructions_builder
        self.feedback_schema = feedback_schema
        self.key_prefix = key_prefix
        self.id_factory = id_factory

    async def run(
        self,
        request: SubmissionRequest,
        on_status: StatusCallback | None = None,
    ) -> SubmissionOutcome:
        errors = validate_request(request)
        if errors:
            raise ValueError(
                "Submission request is invalid: " + ", ".join(sorted(errors))
            )

        request = request.normalized()
        document = request.file
        if document is None:
            raise ValueError("Submission request has no resume file")

        with scoped_log_context():
            clear_log_context(["submission_id", "stage"])
            return await self._run_stages(request, document, on_status)

    async def _run_stages(
        self,
        request: SubmissionRequest,
        document: UploadFile,
        on_status: StatusCallback | None,
    ) -> SubmissionOutcome:
        def emit(state: PipelineState) -> None:
            set_log_context(stage=state)
            logger.info(STATUS_MESSAGES[state])
            if on_status is not None:
                on_status(PipelineStatus(state=state, text=STATUS_MESSAGES[state]))

        def fail(failure: Failed) -> Failed:
            logger.warning(
                f"Submission failed at {failure.stage}: {failure.reason}",
                extra={"stage": failure.stage},
            )
            if on_status is not None:
                on_status(
                    PipelineStatus(
                        state="failed", text=failure_status_text(failure.stage)
                    )
                )
            return failure

        emit("uploading_document")
        uploaded_resume = await self._upload(document, stage="upload-resume")
        if isinstance(uploaded_resume, Failed):
            return fail(uploaded_resume)

        emit("converting_to_image")
        image = await self._convert(document)
        if isinstance(image, Failed):
            return fail(image)

        emit("uploading_image")
        uploaded_image = await self._upload(image, stage="upload-image")
        if isinstance(uploaded_image, Failed):
            return fail(uploaded_image)

        emit("preparing_record")
        record = await self._prepare_record(
            request=request,
            resume=uploaded_resume,
            image=uploaded_image,
        )
        if isinstance(record, Failed):
            return fail(record)

        emit("analyzing")
        response = await self._analyze(record)
        if isinstance(response, Failed):
            return fail(response)

        feedback = self._parse(response, record)
        if isinstance(feedback, Failed):
            return fail(feedback)

        final_record = await self._store_feedback(record, feedback)
        if isinstance(final_record, Failed):
            return fail(final_record)

        emit("complete")
        return Complete(record=final_record)

    async def _upload(
        self,
        file: UploadFile,
        *,
        stage: FailureStage,
    ) -> UploadedFile | Failed:
        uploaded = await self._guard(stage, lambda: self.document_store.upload([file]))
        if isinstance(uploaded, Failed):
            return uploaded
        if not uploaded:
            return Failed(stage=stage, reason=FAILURE_MESSAGES[stage])
        return uploaded

    async def _convert(self, document: UploadFile) -> UploadFile | Failed:
        result = await self._guard("convert", lambda: self.renderer.render(document))
        if isinstance(result, Failed):
            return result
        if result is None or result.file is None:
            error = result.error if result is not None else None
            return Failed(stage="convert", reason=error or FAILURE_MESSAGES["convert"])
        return result.file

    async def _prepare_record(
        self,
        *,
        request: SubmissionRequest,
        resume: UploadedFile,
        image: UploadedFile,
    ) -> SubmissionRecord | Failed:
        record_id = self.id_factory()
        set_log_context(submission_id=record_id)
        record = SubmissionRecord(
            id=record_id,
            resume_path=resume.path,
            image_path=image.path,
            company_name=request.company_name,
            job_title=request.job_title,
            job_description=request.job_description,
        )

        stored = await self._write_record(record, stage="store-record")
        if isinstance(stored, Failed):
            return stored
        return record

    async def _analyze(self, record: SubmissionRecord) -> InferenceResponse | Failed:
        async def request_feedback() -> InferenceResponse | None:
            instructions = self.instructions_builder(
                record.job_title, record.job_description
            )
            return await self.inference_client.feedback(
                record.resume_path, instructions
            )

        response = await self._guard("analyze", request_feedback)
        if isinstance(response, Failed):
            return _with_record(response, record)
        if not response:
            return Failed(
                stage="analyze", reason=FAILURE_MESSAGES["analyze"], record=record
            )
        return response

    def _parse(
        self,
        response: InferenceResponse,
        record: SubmissionRecord,
    ) -> dict[str, Any] | Failed:
        try:
            text = extract_feedback_text(response)
            return parse_feedback(text, schema=self.feedback_schema)
        except ValueError as error:
            return Failed(
                stage="parse", reason=build_error_details(error), record=record
            )

    async def _store_feedback(
        self,
        record: SubmissionRecord,
        feedback: dict[str, Any],
    ) -> SubmissionRecord | Failed:
        final_record = record.with_feedback(feedback)
        stored = await self._write_record(final_record, stage="store-feedback")
        if isinstance(stored, Failed):
            return _with_record(stored, record)
        return final_record

    async def _write_record(
        self,
        record: SubmissionRecord,
        *,
        stage: FailureStage,
    ) -> bool | Failed:
        key = record_key(record.id, self.key_prefix)
        acknowledged = await self._guard(
            stage, lambda: self.record_store.set(key, record.to_json())
        )
        if isinstance(acknowledged, Failed):
            return acknowledged
        if acknowledged is False:
            return Failed(stage=stage, reason=FAILURE_MESSAGES[stage])
        return True

    async def _guard(
        self,
        stage: FailureStage,
        operation: Callable[[], Awaitable[T]],
    ) -> T | Failed:
        start_time = time.perf_counter()
        try:
            result = await operation()
        except Exception as error:  # noqa: BLE001
            logger.exception(f"Collaborator raised during {stage}")
            return Failed(stage=stage, reason=build_error_details(error))
        logger.debug(
            f"{stage} finished",
            extra={"duration_ms": round((time.perf_counter() - start_time) * 1000, 3)},
        )
        return result


def _with_record(failure: Failed, record: SubmissionRecord) -> Failed:
    return Failed(stage=failure.stage, reason=failure.reason, record=record)
