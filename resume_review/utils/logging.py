from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator

LOGGER_NAME = "resume_review"

_CONTEXT_FIELDS = ("submission_id", "stage")

_log_ctx: ContextVar[dict[str, Any]] = ContextVar("resume_review_log_ctx", default={})


def set_log_context(**kwargs: Any) -> None:
    _log_ctx.set({**_log_ctx.get(), **kwargs})


def clear_log_context(keys: Iterable[str] | None = None) -> None:
    if keys is None:
        _log_ctx.set({})
        return
    current = dict(_log_ctx.get())
    for key in keys:
        current.pop(key, None)
    _log_ctx.set(current)


def get_log_context() -> dict[str, Any]:
    return dict(_log_ctx.get())


@contextmanager
def scoped_log_context() -> Iterator[None]:
    """Restore the caller's log context when the block exits."""
    token = _log_ctx.set(get_log_context())
    try:
        yield
    finally:
        _log_ctx.reset(token)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ctx = get_log_context()
        data: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                "%Y-%m-%dT%H:%M:%SZ"
            ),
            "level": record.levelname,
            "logger": record.name,
        }
        for field_name in _CONTEXT_FIELDS:
            data[field_name] = getattr(record, field_name, ctx.get(field_name))
        data["msg"] = record.getMessage()

        if hasattr(record, "duration_ms"):
            data["duration_ms"] = record.duration_ms
        if hasattr(record, "metrics"):
            data["metrics"] = record.metrics
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)

        data = {k: v for k, v in data.items() if v is not None}
        return json.dumps(data, ensure_ascii=False)


def get_logger(name: str | None = None) -> logging.Logger:
    if not name:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def setup_logging(
    level: int | str = logging.INFO,
    log_file: str | None = None,
) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = JsonFormatter()

    sh = logging.StreamHandler(sys.stderr)
    sh.setFormatter(formatter)
    logger.addHandler(sh)

    if log_file:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    return logger
