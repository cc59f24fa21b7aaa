"""Persistence of a finished dataset."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

import duckdb
from duckdb import DuckDBPyConnection
from loguru import logger

from refdata.core.exceptions import RefDataError
from refdata.core.storage.schema import (
    ACTIONS_TABLE,
    ALL_TABLES,
    DATASET_METADATA_TABLE,
    MONTHLY_TABLE,
    PRICES_TABLE,
    TICKERS_TABLE,
    ensure_schema,
)

if TYPE_CHECKING:
    from refdata.core.models.prices import MonthlyPrice, Price
    from refdata.core.models.tickers import TickerMeta
    from refdata.core.services.dataset import Dataset, DatasetSummary


def _ticker_row(ticker: str, meta: TickerMeta) -> list[Any]:
    return [
        ticker,
        meta.source,
        meta.exchange,
        meta.name,
        meta.category,
        meta.sector,
        meta.industry,
        meta.location,
        meta.sec_filings,
        meta.company_site,
        meta.active,
    ]


def _price_row(ticker: str, p: Price) -> list[Any]:
    return [
        ticker,
        p.date,
        p.open,
        p.high,
        p.low,
        p.close,
        p.volume,
        p.close_unadjusted,
        p.close_split_adjusted,
        p.close_fully_adjusted,
        p.dollar_volume,
        p.last_updated,
        p.active,
    ]


def _monthly_row(ticker: str, m: MonthlyPrice) -> list[Any]:
    return [
        ticker,
        m.date_open,
        m.date_close,
        m.open_split_adjusted,
        m.close,
        m.close_split_adjusted,
        m.close_fully_adjusted,
        m.dollar_volume,
        m.sum_relative_move,
        m.num_samples,
        m.active,
    ]


def _metadata_rows(summary: DatasetSummary) -> list[list[Any]]:
    """Summary fields as key/value rows; non-string values are JSON encoded."""

    rows: list[list[Any]] = []
    for key, value in summary.model_dump(mode="json").items():
        if value is not None and not isinstance(value, str):
            value = json.dumps(value)
        rows.append([key, value])
    return rows


class DatasetSink(Protocol):
    """Durable storage for a finished dataset."""

    def write(self, dataset: Dataset) -> None: ...


class DuckDBSink:
    """
    Writes a dataset into DuckDB tables.

    Every write replaces the previous content of the tables, since each run
    recomputes the dataset from a full download. The write happens in a
    single transaction, so a failure leaves the previous content in place.
    """

    def __init__(self, database: str | Path | DuckDBPyConnection = ":memory:"):
        if isinstance(database, DuckDBPyConnection):
            self.connection = database
            self._owns_connection = False
        else:
            if str(database) != ":memory:":
                Path(database).parent.mkdir(parents=True, exist_ok=True)
            try:
                self.connection = duckdb.connect(str(database))
            except duckdb.Error as exc:
                raise RefDataError(f"failed to open {database}: {exc}", "STORAGE_ERROR") from exc
            self._owns_connection = True
        ensure_schema(self.connection)

    @contextmanager
    def transaction(self) -> Iterator[DuckDBPyConnection]:
        try:
            self.connection.execute("BEGIN")
            yield self.connection
            self.connection.execute("COMMIT")
        except Exception:
            self.connection.execute("ROLLBACK")
            raise

    def write(self, dataset: Dataset) -> None:
        summary = dataset.summary()
        try:
            with self.transaction() as conn:
                for table in ALL_TABLES:
                    conn.execute(f"DROP TABLE IF EXISTS {table.name}")
                    table.ensure(conn)

                logger.info("writing {} tickers...", len(dataset.tickers))
                if dataset.tickers:
                    conn.executemany(
                        TICKERS_TABLE.insert_sql(),
                        [_ticker_row(ticker, meta) for ticker, meta in dataset.tickers.items()],
                    )

                logger.info("writing {} prices...", summary.num_prices)
                for ticker, prices in dataset.prices.items():
                    if prices:
                        conn.executemany(PRICES_TABLE.insert_sql(), [_price_row(ticker, p) for p in prices])

                logger.info("writing {} actions...", summary.num_actions)
                for ticker, actions in dataset.actions.items():
                    if actions:
                        conn.executemany(
                            ACTIONS_TABLE.insert_sql(),
                            [[ticker, a.date, a.dividend_factor, a.split_factor, a.active] for a in actions],
                        )

                logger.info("writing {} monthly prices...", summary.num_monthly)
                for ticker, monthly in dataset.monthly.items():
                    if monthly:
                        conn.executemany(MONTHLY_TABLE.insert_sql(), [_monthly_row(ticker, m) for m in monthly])

                logger.info("writing metadata...")
                conn.executemany(DATASET_METADATA_TABLE.insert_sql(), _metadata_rows(summary))
        except duckdb.Error as exc:
            raise RefDataError(f"failed to write dataset: {exc}", "STORAGE_ERROR") from exc

    def close(self) -> None:
        if self._owns_connection:
            self.connection.close()

    def __enter__(self) -> DuckDBSink:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = ["DatasetSink", "DuckDBSink"]
