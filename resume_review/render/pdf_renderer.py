from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import Protocol

from resume_review.pipeline.types import UploadFile

_PDF_SUFFIX_RE = re.compile(r"\.pdf$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class RenderResult:
    file: UploadFile | None
    error: str | None = None


class DocumentRenderer(Protocol):
    async def render(self, document: UploadFile) -> RenderResult: ...


class PdfImageRenderer:
    """Rasterizes the first page of a PDF into a PNG image."""

    def __init__(self, *, scale: float = 4.0) -> None:
        if scale <= 0:
            raise ValueError("Render scale must be positive")
        self.scale = scale

    async def render(self, document: UploadFile) -> RenderResult:
        return await asyncio.to_thread(self._render, document)

    def _render(self, document: UploadFile) -> RenderResult:
        try:
            import fitz
        except ImportError as error:
            raise RuntimeError("pymupdf package is not installed") from error

        try:
            with fitz.open(stream=document.content, filetype="pdf") as pdf:
                if len(pdf) == 0:
                    return RenderResult(file=None, error="PDF has no pages")
                pixmap = pdf[0].get_pixmap(matrix=fitz.Matrix(self.scale, self.scale))
                image_bytes = pixmap.tobytes("png")
        except Exception as error:  # noqa: BLE001
            return RenderResult(file=None, error=f"Failed to convert PDF: {error}")

        return RenderResult(
            file=UploadFile(
                filename=image_filename(document.filename),
                content=image_bytes,
                content_type="image/png",
            )
        )


def image_filename(document_filename: str) -> str:
    return f"{_PDF_SUFFIX_RE.sub('', document_filename)}.png"
