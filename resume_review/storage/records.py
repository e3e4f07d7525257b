from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from resume_review.pipeline.types import SubmissionRecord
from resume_review.storage.db import connection, init_db

DEFAULT_KEY_PREFIX = "resume:"


class RecordStore(Protocol):
    async def set(self, key: str, value: str) -> bool: ...

    async def get(self, key: str) -> str | None: ...


def record_key(record_id: str, prefix: str = DEFAULT_KEY_PREFIX) -> str:
    return f"{prefix}{record_id}"


async def load_record(
    store: RecordStore,
    record_id: str,
    *,
    prefix: str = DEFAULT_KEY_PREFIX,
) -> SubmissionRecord | None:
    raw = await store.get(record_key(record_id, prefix))
    if raw is None:
        return None
    return SubmissionRecord.from_json(raw)


class SqliteRecordStore:
    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        init_db(self.db_path)

    async def set(self, key: str, value: str) -> bool:
        return await asyncio.to_thread(self._set, key, value)

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get, key)

    def _set(self, key: str, value: str) -> bool:
        with connection(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO kv (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT (key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, _utc_now()),
            )
        return True

    def _get(self, key: str) -> str | None:
        with connection(self.db_path) as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        return str(row["value"])


def _utc_now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()
