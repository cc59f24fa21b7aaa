"""Parallel parsing of bulk price CSV rows."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from concurrent.futures import FIRST_COMPLETED, Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from itertools import islice
from typing import TYPE_CHECKING

from loguru import logger

from refdata.core.exceptions import BatchParseError, ConfigurationError, RefDataError
from refdata.core.models.prices import Price

if TYPE_CHECKING:
    from refdata.core.config.settings import PipelineSettings

DEFAULT_BATCH_SIZE = 10_000

EXECUTORS: dict[str, Callable[[int], Executor]] = {
    "thread": ThreadPoolExecutor,
    "process": ProcessPoolExecutor,
}


@dataclass
class PriceBatch:
    """Prices parsed from one batch of CSV rows, grouped by ticker."""

    index: int
    prices: dict[str, list[Price]] = field(default_factory=dict)
    num_rows: int = 0


def parse_price_batch(index: int, rows: Sequence[Sequence[str]], column_map: Mapping[str, int]) -> PriceBatch:
    """Parse one batch of CSV rows.

    Module level so that it can be shipped to a process pool.
    """

    batch = PriceBatch(index=index, num_rows=len(rows))
    for i, row in enumerate(rows):
        try:
            price = Price.from_csv(row, column_map)
        except RefDataError as exc:
            raise exc.annotate(f"failed to parse CSV row {i} of batch {index}")
        batch.prices.setdefault(price.ticker, []).append(price)
    return batch


def _batches(rows: Iterable[Sequence[str]], size: int) -> Iterator[list[Sequence[str]]]:
    it = iter(rows)
    while batch := list(islice(it, size)):
        yield batch


class ParallelBatchParser:
    """
    Parses a CSV row stream into prices on a fixed-size worker pool.

    Rows are cut into batches of ``batch_size`` and each batch is parsed
    independently. Batches are yielded in completion order, so the consumer
    must not rely on their order. At most ``workers * 2`` batches are in flight,
    which bounds memory regardless of the size of the stream.

    The first failing batch stops the scheduling of further batches. Work
    already in flight is drained before the failure is raised as
    BatchParseError.

    Row parsing is pure Python and holds the GIL, so only a process pool
    spreads it over several cores. The thread pool default suits small
    exports and tests.
    """

    def __init__(
        self,
        batch_size: int = DEFAULT_BATCH_SIZE,
        workers: int | None = None,
        executor_factory: Callable[[int], Executor] = ThreadPoolExecutor,
    ):
        if batch_size <= 0:
            raise ConfigurationError(f"batch size = {batch_size} must be > 0", details={"batch_size": batch_size})
        workers = workers if workers is not None else (os.cpu_count() or 1)
        if workers <= 0:
            raise ConfigurationError(f"workers = {workers} must be > 0", details={"workers": workers})
        self.batch_size = batch_size
        self.workers = workers
        self.executor_factory = executor_factory

    @classmethod
    def from_settings(cls, settings: PipelineSettings) -> ParallelBatchParser:
        return cls(
            batch_size=settings.batch_size,
            workers=settings.workers,
            executor_factory=EXECUTORS[settings.executor],
        )

    def parse(self, rows: Iterable[Sequence[str]], column_map: Mapping[str, int]) -> Iterator[PriceBatch]:
        """Yield parsed batches as they complete."""

        max_in_flight = self.workers * 2
        batches = enumerate(_batches(rows, self.batch_size))
        with self.executor_factory(self.workers) as executor:
            pending: dict[Future[PriceBatch], int] = {}
            failure: BaseException | None = None
            failed_batch: int | None = None
            exhausted = False

            while True:
                while failure is None and not exhausted and len(pending) < max_in_flight:
                    try:
                        index, batch = next(batches)
                    except StopIteration:
                        exhausted = True
                        break
                    except Exception as exc:
                        failure = exc
                        break
                    pending[executor.submit(parse_price_batch, index, batch, dict(column_map))] = index

                if not pending:
                    break

                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    index = pending.pop(future)
                    exc = future.exception()
                    if exc is not None:
                        if failure is None:
                            failure, failed_batch = exc, index
                        continue
                    if failure is None:
                        yield future.result()

            if failure is not None:
                logger.error("batch parsing failed: {}", failure)
                raise BatchParseError(
                    f"failed to parse CSV: {failure}",
                    batch_index=failed_batch,
                ) from failure


__all__ = ["DEFAULT_BATCH_SIZE", "EXECUTORS", "ParallelBatchParser", "PriceBatch", "parse_price_batch"]
