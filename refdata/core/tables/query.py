"""
Table queries and lazy paginated row iteration.

This module implements the TableQuery class that provides a fluent,
chainable API for filtering a table, and RowIterator which decodes the
query's pages into records, requesting the next page via the opaque cursor
returned by the API until it reports none.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Generic, TypeVar

from loguru import logger
from pydantic import BaseModel, Field

from refdata.core.exceptions import RefDataError, SchemaMismatchError
from refdata.core.models.schema import RowDecodable, Schema, Value
from refdata.core.tables.http import HttpClient

# The API refuses to return more rows than this in a single page.
MAX_PER_PAGE = 10_000

T = TypeVar("T", bound=RowDecodable)


class _Column(BaseModel):
    name: str
    type: str = ""


class _DataTable(BaseModel):
    data: list[list[Value]] = Field(default_factory=list)
    columns: list[_Column] = Field(default_factory=list)


class _Meta(BaseModel):
    next_cursor_id: str | None = None


class TablePage(BaseModel):
    """One page of a table query response."""

    datatable: _DataTable
    meta: _Meta = Field(default_factory=_Meta)

    @property
    def table_schema(self) -> Schema:
        return Schema.from_json(c.model_dump() for c in self.datatable.columns)

    @property
    def rows(self) -> list[list[Value]]:
        return self.datatable.data

    @property
    def next_cursor(self) -> str:
        return self.meta.next_cursor_id or ""


class TableQuery:
    """
    Fluent builder for table queries.

    Example:
        query = (TableQuery("SHARADAR/ACTIONS")
            .equal("action", "split", "dividend")
            .ge("date", "2020-01-01")
            .columns("ticker", "date", "value")
            .per_page(1000))
        for action in query.read(client, RawAction):
            ...
    """

    def __init__(self, table: str):
        if not table:
            raise ValueError("table cannot be empty")
        self.table = table
        self._params: dict[str, str] = {}
        self._columns: list[str] = []
        self._per_page: int | None = None

    def equal(self, column: str, *values: str) -> TableQuery:
        """Match rows whose column equals any of the values."""

        self._params[column] = ",".join(values)
        return self

    def lt(self, column: str, value: str) -> TableQuery:
        self._params[f"{column}.lt"] = value
        return self

    def gt(self, column: str, value: str) -> TableQuery:
        self._params[f"{column}.gt"] = value
        return self

    def le(self, column: str, value: str) -> TableQuery:
        self._params[f"{column}.lte"] = value
        return self

    def ge(self, column: str, value: str) -> TableQuery:
        self._params[f"{column}.gte"] = value
        return self

    def columns(self, *names: str) -> TableQuery:
        """Restrict the response to the named columns."""

        self._columns = list(names)
        return self

    def per_page(self, n: int) -> TableQuery:
        """Rows per page, clamped to what the API accepts."""

        self._per_page = min(max(n, 0), MAX_PER_PAGE)
        return self

    @property
    def path(self) -> str:
        return f"datatables/{self.table}.json"

    def params(self, cursor: str = "") -> dict[str, str]:
        """Query string parameters for one page request."""

        params = dict(self._params)
        if self._columns:
            params["qopts.columns"] = ",".join(self._columns)
        if self._per_page:
            params["qopts.per_page"] = str(self._per_page)
        if cursor:
            params["qopts.cursor_id"] = cursor
        return params

    def fetch_page(self, client: HttpClient, cursor: str = "") -> TablePage:
        return TablePage.model_validate(client.get_json(self.path, self.params(cursor)))

    def read(self, client: HttpClient, row_type: type[T]) -> RowIterator[T]:
        return RowIterator(client, self, row_type)


class RowIterator(Generic[T]):
    """Lazily decodes the rows of every page of a query.

    The first page is requested on the first ``next()``; a schema that does
    not cover ``row_type.SCHEMA`` aborts iteration with SchemaMismatchError.
    """

    def __init__(self, client: HttpClient, query: TableQuery, row_type: type[T]):
        self.client = client
        self.query = query
        self.row_type = row_type
        self.page_number = 0
        self._rows: Iterator[T] | None = None

    def __iter__(self) -> RowIterator[T]:
        return self

    def __next__(self) -> T:
        if self._rows is None:
            self._rows = self._iter_rows()
        return next(self._rows)

    def _iter_rows(self) -> Iterator[T]:
        cursor = ""
        while True:
            self.page_number += 1
            page = self._fetch(cursor)
            schema = page.table_schema
            if not self.row_type.SCHEMA.subset_of(schema):
                raise SchemaMismatchError(
                    f"unexpected schema: {schema}",
                    expected=str(self.row_type.SCHEMA),
                    actual=str(schema),
                ).annotate(f"failed to query page {self.page_number}")

            logger.debug(
                "fetched page {} of {}: {} rows",
                self.page_number,
                self.query.table,
                len(page.rows),
                table=self.query.table,
                page=self.page_number,
                cursor=page.next_cursor,
            )
            for i, values in enumerate(page.rows):
                try:
                    record = self.row_type.decode(values, schema)
                except RefDataError as exc:
                    raise exc.annotate(f"failed to parse row {i} in page {self.page_number}")
                yield record

            cursor = page.next_cursor
            if not cursor:
                return

    def _fetch(self, cursor: str) -> TablePage:
        try:
            return self.query.fetch_page(self.client, cursor)
        except RefDataError as exc:
            raise exc.annotate(f"failed to query page {self.page_number}")
        except ValueError as exc:
            raise SchemaMismatchError(f"malformed page: {exc}").annotate(
                f"failed to query page {self.page_number}"
            ) from exc


class TableStatus(BaseModel):
    refreshed_at: str | None = None
    status: str = ""
    expected_at: str | None = None
    update_frequency: str = ""


class TableVersion(BaseModel):
    code: str | int | None = None
    default: bool = False
    description: str | None = None


class TableMetadata(BaseModel):
    """Description of a table as reported by its metadata endpoint."""

    vendor_code: str = ""
    datatable_code: str = ""
    name: str = ""
    description: str | None = None
    columns: list[_Column] = Field(default_factory=list)
    filters: list[str] = Field(default_factory=list)
    primary_key: list[str] = Field(default_factory=list)
    premium: bool | None = False
    status: TableStatus = Field(default_factory=TableStatus)
    data_version: TableVersion = Field(default_factory=TableVersion)

    @property
    def table_schema(self) -> Schema:
        return Schema.from_json(c.model_dump() for c in self.columns)


def fetch_table_metadata(client: HttpClient, table: str) -> TableMetadata:
    """Fetch the schema and description of ``table``."""

    body = client.get_json(f"datatables/{table}/metadata.json")
    try:
        return TableMetadata.model_validate(body["datatable"])
    except (KeyError, TypeError, ValueError) as exc:
        raise SchemaMismatchError(f"malformed metadata for {table}: {exc}") from exc


__all__ = [
    "MAX_PER_PAGE",
    "RowIterator",
    "TableMetadata",
    "TablePage",
    "TableQuery",
    "fetch_table_metadata",
]
