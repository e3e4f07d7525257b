from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from resume_review.pipeline.types import UploadFile
from resume_review.storage.documents import LocalDocumentStore


def test_upload_writes_file_and_returns_relative_path(tmp_path: Path) -> None:
    store = LocalDocumentStore(tmp_path)

    uploaded = asyncio.run(
        store.upload([UploadFile(filename="resume.pdf", content=b"%PDF-1.4")])
    )

    assert uploaded is not None
    assert uploaded.path.startswith("uploads/")
    assert uploaded.path.endswith("/resume.pdf")
    assert uploaded.size == 8
    assert (tmp_path / uploaded.path).read_bytes() == b"%PDF-1.4"
    assert asyncio.run(store.read(uploaded.path)) == b"%PDF-1.4"


def test_uploads_with_same_name_do_not_collide(tmp_path: Path) -> None:
    store = LocalDocumentStore(tmp_path)

    first = asyncio.run(store.upload([UploadFile(filename="cv.pdf", content=b"one")]))
    second = asyncio.run(store.upload([UploadFile(filename="cv.pdf", content=b"two")]))

    assert first is not None and second is not None
    assert first.path != second.path
    assert asyncio.run(store.read(first.path)) == b"one"


def test_upload_of_empty_batch_returns_none(tmp_path: Path) -> None:
    assert asyncio.run(LocalDocumentStore(tmp_path).upload([])) is None


def test_upload_strips_directories_from_filename(tmp_path: Path) -> None:
    store = LocalDocumentStore(tmp_path)

    uploaded = asyncio.run(
        store.upload([UploadFile(filename="../../etc/passwd", content=b"x")])
    )

    assert uploaded is not None
    assert uploaded.name == "passwd"
    assert (tmp_path / uploaded.path).is_file()


def test_read_rejects_paths_outside_store(tmp_path: Path) -> None:
    store = LocalDocumentStore(tmp_path / "data")

    with pytest.raises(ValueError, match="escapes"):
        asyncio.run(store.read("../secret.txt"))
