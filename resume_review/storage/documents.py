from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence
from uuid import uuid4

from resume_review.pipeline.types import UploadFile


@dataclass(frozen=True, slots=True)
class UploadedFile:
    path: str
    name: str
    size: int


class DocumentStore(Protocol):
    async def upload(self, files: Sequence[UploadFile]) -> UploadedFile | None: ...

    async def read(self, path: str) -> bytes: ...


class LocalDocumentStore:
    """Blob storage on the local filesystem under ``<data_dir>/uploads``.

    Each upload gets its own random directory so identical file names from
    different submissions never collide. Only the first file of a batch is
    reported back, matching the single-document uploads the pipeline makes.
    """

    def __init__(self, data_dir: Path | str) -> None:
        self.data_dir = Path(data_dir)

    @property
    def uploads_root(self) -> Path:
        return self.data_dir / "uploads"

    async def upload(self, files: Sequence[UploadFile]) -> UploadedFile | None:
        if not files:
            return None
        return await asyncio.to_thread(self._write_files, list(files))

    async def read(self, path: str) -> bytes:
        return await asyncio.to_thread(self._resolve(path).read_bytes)

    def _write_files(self, files: list[UploadFile]) -> UploadedFile:
        upload_dir = self.uploads_root / uuid4().hex
        upload_dir.mkdir(parents=True, exist_ok=True)

        uploaded: list[UploadedFile] = []
        for file in files:
            target = upload_dir / _safe_filename(file.filename)
            target.write_bytes(file.content)
            uploaded.append(
                UploadedFile(
                    path=target.relative_to(self.data_dir).as_posix(),
                    name=target.name,
                    size=len(file.content),
                )
            )

        return uploaded[0]

    def _resolve(self, path: str) -> Path:
        root = self.data_dir.resolve()
        resolved = (root / path).resolve()
        if root not in resolved.parents:
            raise ValueError(f"Path escapes document store root: {path}")
        return resolved


def _safe_filename(filename: str) -> str:
    name = Path(filename).name.strip()
    return name or "document"
