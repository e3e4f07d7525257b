from __future__ import annotations

import argparse
import asyncio
import json
import mimetypes
import sys
from pathlib import Path
from typing import Sequence

from resume_review.config.settings import Settings, get_settings
from resume_review.llm_client.openai_client import OpenAIInferenceClient
from resume_review.pipeline.submission import SubmissionPipeline
from resume_review.pipeline.types import (
    Complete,
    PipelineStatus,
    SubmissionRequest,
    UploadFile,
)
from resume_review.pipeline.validate_request import validate_request
from resume_review.prompts.manager import PromptManager, build_instructions
from resume_review.render.pdf_renderer import PdfImageRenderer
from resume_review.storage.documents import LocalDocumentStore
from resume_review.storage.records import SqliteRecordStore, load_record
from resume_review.utils.logging import setup_logging


def build_pipeline(
    settings: Settings,
    *,
    prompt_version: str | None = None,
) -> SubmissionPipeline:
    prompt_set = PromptManager(settings.resolved_prompts_root).load_prompt_set(
        prompt_name=settings.default_prompt_name,
        version=prompt_version or settings.default_prompt_version,
    )
    document_store = LocalDocumentStore(settings.resolved_data_dir)

    def instructions_builder(job_title: str, job_description: str) -> str:
        return build_instructions(
            prompt_set, job_title=job_title, job_description=job_description
        )

    return SubmissionPipeline(
        document_store=document_store,
        renderer=PdfImageRenderer(scale=settings.render_scale),
        record_store=SqliteRecordStore(settings.resolved_sqlite_path),
        inference_client=OpenAIInferenceClient(
            document_reader=document_store,
            model=settings.default_model,
            api_key=settings.openai_api_key,
        ),
        instructions_builder=instructions_builder,
        feedback_schema=(
            prompt_set.schema if settings.validate_feedback_schema else None
        ),
        key_prefix=settings.record_key_prefix,
    )


def read_upload(path: Path) -> UploadFile:
    return UploadFile(
        filename=path.name,
        content=path.read_bytes(),
        content_type=mimetypes.guess_type(path.name)[0] or "application/pdf",
    )


def run_submit(args: argparse.Namespace, settings: Settings) -> int:
    file_path = Path(args.file) if args.file else None
    if file_path is not None and not file_path.is_file():
        print(f"Resume file not found: {file_path}", file=sys.stderr)
        return 1

    request = SubmissionRequest(
        company_name=args.company or "",
        job_title=args.title or "",
        job_description=args.description or "",
        file=read_upload(file_path) if file_path is not None else None,
    )
    errors = validate_request(request)
    if errors:
        for field_name, message in errors.items():
            print(f"{field_name}: {message}", file=sys.stderr)
        return 1

    pipeline = build_pipeline(settings, prompt_version=args.prompt_version)

    def print_status(status: PipelineStatus) -> None:
        print(status.text, file=sys.stderr if status.is_error else sys.stdout)

    outcome = asyncio.run(pipeline.run(request, on_status=print_status))
    if isinstance(outcome, Complete):
        print(_json_text(outcome.record.to_payload()), end="")
        return 0

    print(outcome.reason, file=sys.stderr)
    return 1


def run_show(args: argparse.Namespace, settings: Settings) -> int:
    store = SqliteRecordStore(settings.resolved_sqlite_path)
    record = asyncio.run(
        load_record(store, args.id, prefix=settings.record_key_prefix)
    )
    if record is None:
        print(f"Submission not found: {args.id}", file=sys.stderr)
        return 1
    print(_json_text(record.to_payload()), end="")
    return 0


def _json_text(payload: dict[str, object]) -> str:
    return f"{json.dumps(payload, ensure_ascii=False, indent=2)}\n"


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="resume-review",
        description="Submit a resume for ATS feedback or inspect stored results.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_submit = subparsers.add_parser("submit", help="Run the submission pipeline.")
    p_submit.add_argument("--company", default="", help="Company name.")
    p_submit.add_argument("--title", default="", help="Job title.")
    p_submit.add_argument("--description", default="", help="Job description.")
    p_submit.add_argument("--file", default=None, help="Path to the resume PDF.")
    p_submit.add_argument(
        "--prompt-version",
        default=None,
        help="Prompt version to use, for example v001. Defaults to the latest.",
    )

    p_show = subparsers.add_parser("show", help="Print a stored submission record.")
    p_show.add_argument("--id", required=True, help="Submission identifier.")

    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(
        level=settings.log_level,
        log_file=str(settings.log_file) if settings.log_file else None,
    )

    if args.command == "submit":
        return run_submit(args, settings)
    return run_show(args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
