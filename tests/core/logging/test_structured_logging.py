"""Tests for pipeline logging."""

from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

from refdata.core import logging as refdata_logging
from refdata.core.logging import PIPELINE_FIELDS, configure_logging, current_trace_id, log_context, logger


def _read_records(stream: io.StringIO) -> list[dict[str, object]]:
    lines = [line for line in stream.getvalue().splitlines() if line.strip()]
    return [json.loads(line) for line in lines]


def test_pipeline_fields_are_promoted() -> None:
    buffer = io.StringIO()
    configure_logging(console_stream=buffer)

    with log_context(trace_id="trace-123", table="SHARADAR/TICKERS", batch=7):
        logger.debug("hidden at INFO")
        logger.info("fetched page {}", 2, page=2, cursor="abc")

    records = _read_records(buffer)
    assert len(records) == 1
    record = records[0]
    assert record["message"] == "fetched page 2"
    assert record["level"] == "INFO"
    assert record["trace_id"] == "trace-123"
    assert record["table"] == "SHARADAR/TICKERS"
    assert record["page"] == 2
    assert record["cursor"] == "abc"
    assert record["context"] == {"batch": 7}


def test_every_pipeline_field_is_present() -> None:
    buffer = io.StringIO()
    configure_logging(console_stream=buffer)

    logger.info("plain event")

    record = _read_records(buffer)[0]
    assert {key: record[key] for key in PIPELINE_FIELDS} == dict.fromkeys(PIPELINE_FIELDS)
    assert record["trace_id"] is None
    assert "context" not in record


def test_call_fields_override_context() -> None:
    buffer = io.StringIO()
    configure_logging(console_stream=buffer)

    with log_context(ticker="A"):
        logger.warning("skipping {} prices", "B", ticker="B")

    assert _read_records(buffer)[0]["ticker"] == "B"


def test_nested_contexts_share_the_trace() -> None:
    buffer = io.StringIO()
    configure_logging(console_stream=buffer)

    with log_context() as trace_id:
        logger.info("first event")
        with log_context(table="SHARADAR/SFP") as nested:
            assert nested == trace_id
            logger.info("nested event")
        assert current_trace_id() == trace_id
    logger.info("outside context")

    records = _read_records(buffer)
    assert [r["trace_id"] for r in records] == [trace_id, trace_id, None]
    assert [r["table"] for r in records] == [None, "SHARADAR/SFP", None]
    assert current_trace_id() is None


def test_outermost_contexts_start_new_traces() -> None:
    with log_context() as first:
        pass
    with log_context() as second:
        pass

    assert first != second


def test_exception_is_rendered() -> None:
    buffer = io.StringIO()
    configure_logging(console_stream=buffer)

    try:
        raise ValueError("bad row")
    except ValueError:
        logger.exception("parsing failed")

    assert _read_records(buffer)[0]["exception"] == "ValueError: bad row"


def test_level_filters_records() -> None:
    buffer = io.StringIO()
    configure_logging("warning", console_stream=buffer)

    logger.info("hidden")
    logger.warning("shown")

    assert [r["message"] for r in _read_records(buffer)] == ["shown"]


def test_unknown_level_is_rejected() -> None:
    with pytest.raises(ValueError):
        configure_logging("CHATTY", console_stream=io.StringIO())


def test_file_gets_json_lines(tmp_path: Path) -> None:
    path = tmp_path / "logs" / "refdata.jsonl"
    configure_logging(console_output=False, file_path=path, serialize=False)

    logger.info("downloaded 1.0 MB", table="SHARADAR/SEP", bytes=1_048_576)

    record = json.loads(path.read_text(encoding="utf-8").splitlines()[-1])
    assert record["table"] == "SHARADAR/SEP"
    assert record["bytes"] == 1_048_576


def test_plain_text_console_lists_set_fields() -> None:
    buffer = io.StringIO()
    configure_logging(console_stream=buffer, serialize=False)

    logger.info("sorting prices...", table="SHARADAR/SEP")
    logger.info("all done.")

    first, second = buffer.getvalue().splitlines()
    assert first.endswith("| sorting prices... | table=SHARADAR/SEP")
    assert second.endswith("| all done.")
    assert not first.startswith("{")


def test_package_exports() -> None:
    assert set(refdata_logging.__all__) == {
        "PIPELINE_FIELDS",
        "LogConfig",
        "configure_logging",
        "current_trace_id",
        "log_context",
        "logger",
    }
