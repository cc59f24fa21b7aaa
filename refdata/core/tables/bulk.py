"""
Bulk table export.

A bulk export is requested in two steps: the first call returns a handle with
the export status and a download link, then the link yields a zip archive
holding a single CSV file. CSVReader streams that file one row at a time.
"""

from __future__ import annotations

import csv
import io
import tempfile
import zipfile
from collections.abc import Callable, Iterator
from contextlib import ExitStack
from enum import Enum

import httpx
from loguru import logger
from pydantic import BaseModel, Field

from refdata.core.exceptions import PreconditionError, RefDataError, TransportError
from refdata.core.tables.http import HttpClient

# Called with the cumulative number of bytes downloaded so far.
Monitor = Callable[[int], None]

DEFAULT_MONITOR_INTERVAL = 10 * 1024 * 1024

# Archives larger than this are spooled to disk instead of memory.
_SPOOL_MAX_SIZE = 64 * 1024 * 1024
_CHUNK_SIZE = 1024 * 1024


class BulkStatus(str, Enum):
    """Export job status."""

    FRESH = "fresh"
    REGENERATING = "regenerating"
    CREATING = "creating"


# The previous archive remains downloadable while a new one is generated.
READY_STATUSES = frozenset({BulkStatus.FRESH, BulkStatus.REGENERATING})


class _File(BaseModel):
    link: str | None = None
    status: BulkStatus
    data_snapshot_time: str | None = None


class _Datatable(BaseModel):
    last_refreshed_time: str | None = None


class _BulkDownload(BaseModel):
    file: _File
    datatable: _Datatable = Field(default_factory=_Datatable)


class BulkDownloadHandle(BaseModel):
    """Result of the export request."""

    table: str
    link: str | None = None
    status: BulkStatus
    snapshot_time: str | None = None
    last_refreshed_time: str | None = None

    @property
    def ready(self) -> bool:
        return self.status in READY_STATUSES


def request_bulk_download(client: HttpClient, table: str) -> BulkDownloadHandle:
    """Request an export of ``table`` and return its handle."""

    body = client.get_json(f"datatables/{table}.json", {"qopts.export": "true"})
    try:
        data = _BulkDownload.model_validate(body["datatable_bulk_download"])
    except (KeyError, TypeError, ValueError) as exc:
        raise TransportError(f"malformed bulk download response for {table}: {exc}") from exc

    logger.info("bulk download of {} is {}", table, data.file.status.value, table=table)
    return BulkDownloadHandle(
        table=table,
        link=data.file.link,
        status=data.file.status,
        snapshot_time=data.file.data_snapshot_time,
        last_refreshed_time=data.datatable.last_refreshed_time,
    )


def logging_monitor(table: str) -> Monitor:
    """Monitor that logs download progress."""

    def monitor(total: int) -> None:
        logger.info("downloaded {:.1f} MB of {}", total / (1024 * 1024), table, table=table, bytes=total)

    return monitor


class CSVReader:
    """
    Streaming CSV reader over the single file of an export archive.

    Owns every resource opened for the download and releases them in reverse
    order of acquisition on ``close()``. Use it as a context manager.
    """

    def __init__(self, stack: ExitStack, text: io.TextIOBase):
        self._stack = stack
        self._reader = csv.reader(text)
        self.closed = False

    def read(self) -> list[str] | None:
        """Return the next row, or None at the end of the stream."""

        return next(self._reader, None)

    def __iter__(self) -> Iterator[list[str]]:
        return self._reader

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._stack.close()

    def __enter__(self) -> CSVReader:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def open_bulk_csv(
    client: HttpClient,
    handle: BulkDownloadHandle,
    monitor: Monitor | None = None,
    monitor_interval: int = DEFAULT_MONITOR_INTERVAL,
) -> CSVReader:
    """Download the export archive and open its CSV file for streaming.

    The archive is buffered in a spooled temporary file, so only exports
    larger than the spool size touch the disk. Every resource acquired here is
    released if any step fails.
    """

    if handle.status == BulkStatus.CREATING:
        raise PreconditionError(
            "data archive is not available", details={"table": handle.table, "status": handle.status.value}
        )
    if not handle.link:
        raise PreconditionError("bulk download handle has no link", details={"table": handle.table})
    if monitor_interval <= 0:
        raise ValueError("monitor_interval must be positive")

    with ExitStack() as stack:
        buffer = stack.enter_context(tempfile.SpooledTemporaryFile(max_size=_SPOOL_MAX_SIZE))
        try:
            with client.stream(handle.link) as response:
                total = 0
                next_report = monitor_interval
                for chunk in response.iter_bytes(_CHUNK_SIZE):
                    buffer.write(chunk)
                    total += len(chunk)
                    if monitor is not None and total >= next_report:
                        monitor(total)
                        next_report = (total // monitor_interval + 1) * monitor_interval
        except RefDataError as exc:
            raise exc.annotate("failed to initiate download")
        except (httpx.HTTPError, OSError) as exc:
            raise TransportError(f"failed to read response body: {exc}") from exc
        buffer.seek(0)

        try:
            archive = stack.enter_context(zipfile.ZipFile(buffer))
        except zipfile.BadZipFile as exc:
            raise PreconditionError(f"failed to read zip archive: {exc}") from exc
        names = archive.namelist()
        if len(names) != 1:
            raise PreconditionError(
                f"archive contains {len(names)} files (expected 1):\n  " + "\n  ".join(names),
                details={"files": names},
            )
        entry = stack.enter_context(archive.open(names[0]))
        text = stack.enter_context(io.TextIOWrapper(entry, encoding="utf-8", newline=""))
        logger.debug("streaming {} from the {} archive", names[0], handle.table, table=handle.table)
        return CSVReader(stack.pop_all(), text)


__all__ = [
    "BulkDownloadHandle",
    "BulkStatus",
    "CSVReader",
    "DEFAULT_MONITOR_INTERVAL",
    "Monitor",
    "READY_STATUSES",
    "logging_monitor",
    "open_bulk_csv",
    "request_bulk_download",
]
