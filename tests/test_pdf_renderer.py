from __future__ import annotations

import asyncio

import fitz
import pytest

from resume_review.pipeline.types import UploadFile
from resume_review.render.pdf_renderer import PdfImageRenderer, image_filename


def _pdf_bytes(pages: int = 1) -> bytes:
    doc = fitz.open()
    for index in range(pages):
        page = doc.new_page(width=200, height=100)
        page.insert_text(fitz.Point(20, 40), f"Jane Doe page {index + 1}")
    data = doc.tobytes()
    doc.close()
    return data


def test_render_first_page_to_png() -> None:
    renderer = PdfImageRenderer(scale=2.0)

    result = asyncio.run(
        renderer.render(UploadFile(filename="Resume.PDF", content=_pdf_bytes(pages=2)))
    )

    assert result.error is None
    assert result.file is not None
    assert result.file.filename == "Resume.png"
    assert result.file.content_type == "image/png"
    assert result.file.content.startswith(b"\x89PNG")

    pixmap = fitz.Pixmap(result.file.content)
    assert (pixmap.width, pixmap.height) == (400, 200)


def test_render_reports_error_for_invalid_document() -> None:
    renderer = PdfImageRenderer()

    result = asyncio.run(
        renderer.render(UploadFile(filename="resume.pdf", content=b"not a pdf"))
    )

    assert result.file is None
    assert result.error is not None
    assert result.error.startswith("Failed to convert PDF:")


def test_renderer_rejects_non_positive_scale() -> None:
    with pytest.raises(ValueError):
        PdfImageRenderer(scale=0)


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("resume.pdf", "resume.png"),
        ("my.resume.PDF", "my.resume.png"),
        ("resume", "resume.png"),
    ],
)
def test_image_filename(source: str, expected: str) -> None:
    assert image_filename(source) == expected
