"""
Loguru setup for the download pipeline.

Records carry the run's trace id plus the pipeline fields below, taken from
the logging call's keyword arguments or from the enclosing ``log_context``.
JSON output promotes those fields to the top level of every line, so a log
of a download can be filtered by table or ticker without parsing messages.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any
from uuid import uuid4

from loguru import logger

from refdata.core.logging.config import LogConfig

# table: datatable being read, ticker: ticker being handled, page/cursor:
# position of a paginated query, bytes: received so far by a bulk download.
PIPELINE_FIELDS = ("table", "ticker", "page", "cursor", "bytes")

_TEXT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {message}"

_trace_id: ContextVar[str | None] = ContextVar("refdata_trace_id", default=None)
_fields: ContextVar[dict[str, Any]] = ContextVar("refdata_log_fields", default={})


def _patch(record: dict[str, Any]) -> None:
    extra = record["extra"]
    extra.setdefault("trace_id", _trace_id.get())
    for key, value in _fields.get().items():
        extra.setdefault(key, value)


def _json_line(record: dict[str, Any]) -> str:
    extra = record["extra"]
    line: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "trace_id": extra.get("trace_id"),
    }
    for key in PIPELINE_FIELDS:
        line[key] = extra.get(key)
    context = {k: v for k, v in extra.items() if k not in line and k != "_json"}
    if context:
        line["context"] = context
    exception = record["exception"]
    if exception is not None and exception.type is not None:
        line["exception"] = f"{exception.type.__name__}: {exception.value}"
    # Rendered into extra so that loguru does not parse the braces of the JSON.
    extra["_json"] = json.dumps(line, default=str)
    return "{extra[_json]}\n"


def _text_line(record: dict[str, Any]) -> str:
    extra = record["extra"]
    fields = " ".join(f"{key}={{extra[{key}]}}" for key in PIPELINE_FIELDS if extra.get(key) is not None)
    if fields:
        return f"{_TEXT_FORMAT} | {fields}\n{{exception}}"
    return _TEXT_FORMAT + "\n{exception}"


def configure_logging(level: str = "INFO", **options: Any) -> None:
    """Replace all log handlers; ``options`` are LogConfig fields.

    Raises ValueError for a level loguru does not know.
    """

    config = LogConfig(level=level, **options)
    level = config.level.upper()
    handlers: list[dict[str, Any]] = []
    if config.console_output:
        handlers.append(
            {
                "sink": config.console_stream or sys.stderr,
                "level": level,
                "format": _json_line if config.serialize else _text_line,
            }
        )
    if config.file_path is not None:
        handlers.append({"sink": str(config.file_path), "level": level, "format": _json_line, "encoding": "utf-8"})
    logger.configure(handlers=handlers, patcher=_patch)


@contextmanager
def log_context(*, trace_id: str | None = None, **fields: Any) -> Iterator[str]:
    """
    Tag every record logged inside the block with ``fields``.

    The block keeps the trace id of an enclosing block unless ``trace_id`` is
    given. An outermost block starts a new trace. Yields the trace id.
    """

    trace = trace_id or _trace_id.get() or uuid4().hex
    trace_token = _trace_id.set(trace)
    fields_token = _fields.set({**_fields.get(), **fields})
    try:
        yield trace
    finally:
        _fields.reset(fields_token)
        _trace_id.reset(trace_token)


def current_trace_id() -> str | None:
    """Trace id of the enclosing ``log_context``, if any."""

    return _trace_id.get()


configure_logging()


__all__ = ["PIPELINE_FIELDS", "configure_logging", "current_trace_id", "log_context", "logger"]
