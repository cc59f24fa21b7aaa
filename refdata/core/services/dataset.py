"""
Dataset orchestration.

Dataset downloads the ticker, action and price tables into per-ticker maps,
reconciles actions against prices, resamples the prices by month, and
hands the finished maps to a sink.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger
from pydantic import BaseModel, Field

from refdata.core.exceptions import PreconditionError, RefDataError
from refdata.core.logging import log_context
from refdata.core.models.actions import RELEVANT_ACTIONS, ActionRecord, ActionType, RawAction
from refdata.core.models.prices import PRICE_SCHEMA, MonthlyPrice, Price
from refdata.core.models.tickers import Ticker, TickerMeta
from refdata.core.services.batch_parser import ParallelBatchParser
from refdata.core.services.monthly import compute_monthly
from refdata.core.services.reconciler import mark_active, reconcile_actions
from refdata.core.tables.bulk import (
    DEFAULT_MONITOR_INTERVAL,
    logging_monitor,
    open_bulk_csv,
    request_bulk_download,
)
from refdata.core.tables.http import HttpClient
from refdata.core.tables.query import RowIterator, TableQuery

if TYPE_CHECKING:
    from collections.abc import Callable
    from contextlib import AbstractContextManager

    from refdata.core.storage.sink import DatasetSink

    SinkFactory = Callable[[], AbstractContextManager[DatasetSink]]

PUBLISHER = "SHARADAR"

_PRICE_LOG_INTERVAL = 1_000_000
_SORT_LOG_INTERVAL = 1000


class TableName(str, Enum):
    """Tables of the publisher used by the dataset."""

    TICKERS = "TICKERS"
    ACTIONS = "ACTIONS"
    SEP = "SEP"  # equities
    SFP = "SFP"  # funds


DEFAULT_PRICE_TABLES = (TableName.SEP, TableName.SFP)


def full_table_name(table: TableName | str) -> str:
    return f"{PUBLISHER}/{TableName(table).value}"


def fetch_tickers(client: HttpClient, *tables: TableName | str, per_page: int | None = None) -> RowIterator[Ticker]:
    """Lazily read the TICKERS rows of ``tables`` (default: all tables)."""

    query = TableQuery(full_table_name(TableName.TICKERS))
    if tables:
        query.equal("table", *(TableName(t).value for t in tables))
    if per_page is not None:
        query.per_page(per_page)
    return query.read(client, Ticker)


def fetch_actions(client: HttpClient, *actions: ActionType, per_page: int | None = None) -> RowIterator[RawAction]:
    """Lazily read the ACTIONS rows of the given kinds (default: all kinds)."""

    query = TableQuery(full_table_name(TableName.ACTIONS))
    if actions:
        query.equal("action", *(ActionType(a).value for a in actions))
    if per_page is not None:
        query.per_page(per_page)
    return query.read(client, RawAction)


class DatasetSummary(BaseModel):
    """Counts and date range of a downloaded dataset."""

    tables: list[str] = Field(default_factory=list)
    num_tickers: int = 0
    num_raw_actions: int = 0
    num_prices: int = 0
    num_actions: int = 0
    num_monthly: int = 0
    first_price_date: date | None = None
    last_price_date: date | None = None


class Dataset:
    """
    Per-ticker maps of tickers, raw actions, prices and reconciled actions.

    The maps are keyed by ticker and carry no ordering between tickers. Each
    fetch overwrites the entries of the tickers it fetched and leaves the
    maps untouched when it fails.
    """

    def __init__(
        self,
        client: HttpClient,
        parser: ParallelBatchParser | None = None,
        monitor_interval: int = DEFAULT_MONITOR_INTERVAL,
        per_page: int | None = None,
    ):
        self.client = client
        self.parser = parser or ParallelBatchParser()
        self.monitor_interval = monitor_interval
        self.per_page = per_page

        self.tickers: dict[str, TickerMeta] = {}
        self.raw_actions: dict[str, list[RawAction]] = {}
        self.prices: dict[str, list[Price]] = {}
        self.actions: dict[str, list[ActionRecord]] = {}
        self.monthly: dict[str, list[MonthlyPrice]] = {}
        self.tables: list[str] = []

    @property
    def num_raw_actions(self) -> int:
        return sum(len(a) for a in self.raw_actions.values())

    @property
    def num_prices(self) -> int:
        return sum(len(p) for p in self.prices.values())

    @property
    def num_actions(self) -> int:
        return sum(len(a) for a in self.actions.values())

    @property
    def num_monthly(self) -> int:
        return sum(len(m) for m in self.monthly.values())

    def fetch_tickers(self, *tables: TableName | str) -> None:
        """Fetch tickers of the given price tables (default: all tables)."""

        tickers: dict[str, TickerMeta] = {}
        try:
            for ticker in fetch_tickers(self.client, *tables, per_page=self.per_page):
                tickers[ticker.ticker] = ticker.to_meta()
        except RefDataError as exc:
            raise exc.annotate("failed to read tickers")
        self.tickers.update(tickers)

    def fetch_actions(self, *actions: ActionType) -> None:
        """Fetch raw actions of the given kinds (default: all kinds)."""

        raw_actions: dict[str, list[RawAction]] = {}
        try:
            for action in fetch_actions(self.client, *actions, per_page=self.per_page):
                raw_actions.setdefault(action.ticker, []).append(action)
        except RefDataError as exc:
            raise exc.annotate("failed to read actions")
        for ticker_actions in raw_actions.values():
            ticker_actions.sort(key=lambda a: a.date)
        self.raw_actions.update(raw_actions)

    def bulk_download_prices(self, table: TableName | str) -> None:
        """
        Bulk download the daily prices of ``table``.

        Must run after fetch_tickers: prices of tickers missing from the
        tickers map are skipped with a warning.
        """

        table = TableName(table)
        full_table = full_table_name(table)
        logger.info("initiating bulk download of {} prices", table.value, table=full_table)
        try:
            handle = request_bulk_download(self.client, full_table)
        except RefDataError as exc:
            raise exc.annotate(f"failed to initiate bulk download of {table.value}")
        if not handle.ready:
            raise PreconditionError(
                f"table {table.value} is not ready for bulk download, status={handle.status.value}",
                details={"table": full_table, "status": handle.status.value},
            )

        prices: dict[str, list[Price]] = {}
        skipped: set[str] = set()
        num_prices = 0
        try:
            reader = open_bulk_csv(
                self.client,
                handle,
                monitor=logging_monitor(full_table),
                monitor_interval=self.monitor_interval,
            )
        except RefDataError as exc:
            raise exc.annotate(f"failed to bulk-download CSV data of {table.value}")

        with reader:
            header = reader.read()
            if header is None:
                raise PreconditionError(f"CSV data of {table.value} is empty", details={"table": full_table})
            try:
                column_map = PRICE_SCHEMA.map_csv_columns(header)
            except RefDataError as exc:
                raise exc.annotate("unexpected CSV header")

            logger.info("unzipping the prices CSV file...", table=full_table)
            for batch in self.parser.parse(reader, column_map):
                for ticker, batch_prices in batch.prices.items():
                    if ticker not in self.tickers:
                        if ticker not in skipped:
                            skipped.add(ticker)
                            logger.warning("skipping {} prices, it's not in TICKERS table", ticker, ticker=ticker)
                        continue
                    prices.setdefault(ticker, []).extend(batch_prices)
                    before = num_prices
                    num_prices += len(batch_prices)
                    if num_prices // _PRICE_LOG_INTERVAL > before // _PRICE_LOG_INTERVAL:
                        logger.debug("unzipped {}M prices", num_prices // _PRICE_LOG_INTERVAL, table=full_table)

        logger.info("sorting prices...", table=full_table)
        for n, ticker_prices in enumerate(prices.values(), start=1):
            ticker_prices.sort(key=lambda p: p.date)
            if n % _SORT_LOG_INTERVAL == 0:
                logger.debug("sorted prices for {} tickers out of {}", n, len(prices), table=full_table)
        logger.info("done sorting", table=full_table)

        self.prices.update(prices)
        if full_table not in self.tables:
            self.tables.append(full_table)

    def compute_actions(self) -> None:
        """
        Reconcile raw actions against prices for every ticker with prices.

        Prices are restamped with the listing state in effect on their date.
        """

        actions: dict[str, list[ActionRecord]] = {}
        for ticker in sorted(set(self.raw_actions) - set(self.tickers)):
            logger.warning("skipping {} actions, it's not in TICKERS table", ticker, ticker=ticker)
        for ticker, prices in list(self.prices.items()):
            meta = self.tickers.get(ticker)
            if meta is None or not prices:
                continue
            records = reconcile_actions(prices, self.raw_actions.get(ticker, []), meta.active)
            actions[ticker] = records
            self.prices[ticker] = mark_active(prices, records)
        self.actions = actions
        logger.info("computed {} actions for {} tickers", self.num_actions, len(actions))

    def compute_monthly(self) -> None:
        """Resample every ticker's daily prices into calendar months."""

        self.monthly = {ticker: compute_monthly(prices) for ticker, prices in self.prices.items() if prices}
        logger.info("computed {} monthly prices for {} tickers", self.num_monthly, len(self.monthly))

    def summary(self) -> DatasetSummary:
        first = [p[0].date for p in self.prices.values() if p]
        last = [p[-1].date for p in self.prices.values() if p]
        return DatasetSummary(
            tables=list(self.tables),
            num_tickers=len(self.tickers),
            num_raw_actions=self.num_raw_actions,
            num_prices=self.num_prices,
            num_actions=self.num_actions,
            num_monthly=self.num_monthly,
            first_price_date=min(first, default=None),
            last_price_date=max(last, default=None),
        )

    def download(self, *tables: TableName | str) -> DatasetSummary:
        """
        Download tickers, actions and prices of ``tables``, then derive the
        reconciled actions and monthly prices.

        Tables default to equities and funds. The first failure aborts the run.
        """

        tables = tuple(TableName(t) for t in tables) or DEFAULT_PRICE_TABLES
        names = ", ".join(t.value for t in tables)
        with log_context():
            logger.info("fetching tickers for {}...", names)
            try:
                self.fetch_tickers(*tables)
            except RefDataError as exc:
                raise exc.annotate("failed to fetch tickers")
            logger.info("downloaded {} tickers", len(self.tickers))

            logger.info("fetching actions...")
            try:
                self.fetch_actions(*RELEVANT_ACTIONS)
            except RefDataError as exc:
                raise exc.annotate("failed to fetch actions")
            logger.info("downloaded {} raw actions", self.num_raw_actions)

            for table in tables:
                current = self.num_prices
                with log_context(table=full_table_name(table)):
                    logger.info("bulk-downloading {} prices", table.value)
                    try:
                        self.bulk_download_prices(table)
                    except RefDataError as exc:
                        raise exc.annotate(f"failed to download {table.value} price table")
                    logger.info("downloaded {} {} prices", self.num_prices - current, table.value)
            logger.info("downloaded total {} prices", self.num_prices)

            logger.info("computing actions...")
            self.compute_actions()
            logger.info("computing monthly prices...")
            self.compute_monthly()
            return self.summary()

    def download_all(self, open_sink: SinkFactory, *tables: TableName | str) -> DatasetSummary:
        """
        Download ``tables`` and write the dataset to the sink from ``open_sink``.

        The sink is opened only after the download completes, so a failed
        download leaves no storage behind.
        """

        with log_context():
            summary = self.download(*tables)
            logger.info("writing dataset...")
            try:
                with open_sink() as sink:
                    sink.write(self)
            except RefDataError as exc:
                raise exc.annotate("failed to write dataset")
            logger.info("all done.")
        return summary


__all__ = [
    "DEFAULT_PRICE_TABLES",
    "Dataset",
    "DatasetSummary",
    "TableName",
    "fetch_actions",
    "fetch_tickers",
    "full_table_name",
]
