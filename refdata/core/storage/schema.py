"""DuckDB table definitions for a downloaded dataset."""

from __future__ import annotations

from collections.abc import Sequence  # noqa: TC003
from dataclasses import dataclass

from duckdb import DuckDBPyConnection


@dataclass(frozen=True)
class ColumnDef:
    """Represents a DuckDB table column definition."""

    name: str
    data_type: str
    constraints: Sequence[str] = ()

    def render(self) -> str:
        parts = [self.name, self.data_type, *self.constraints]
        return " ".join(parts)


@dataclass(frozen=True)
class TableSchema:
    """Utility wrapper describing a DuckDB table schema."""

    name: str
    columns: Sequence[ColumnDef]
    primary_key: Sequence[str] = ()

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    def create_ddl(self) -> str:
        column_defs: list[str] = [column.render() for column in self.columns]
        if self.primary_key:
            pk_cols = ", ".join(self.primary_key)
            column_defs.append(f"PRIMARY KEY ({pk_cols})")
        columns_sql = ",\n                ".join(column_defs)
        return f"""
            CREATE TABLE IF NOT EXISTS {self.name} (
                {columns_sql}
            )
            """.strip()

    def insert_sql(self) -> str:
        placeholders = ", ".join("?" for _ in self.columns)
        return f"INSERT INTO {self.name} ({', '.join(self.column_names)}) VALUES ({placeholders})"

    def ensure(self, conn: DuckDBPyConnection) -> None:
        """Create the table on the provided connection if it does not exist."""

        conn.execute(self.create_ddl())


TICKERS_TABLE = TableSchema(
    name="tickers",
    columns=(
        ColumnDef("ticker", "VARCHAR", ("NOT NULL",)),
        ColumnDef("source", "VARCHAR"),
        ColumnDef("exchange", "VARCHAR"),
        ColumnDef("name", "VARCHAR"),
        ColumnDef("category", "VARCHAR"),
        ColumnDef("sector", "VARCHAR"),
        ColumnDef("industry", "VARCHAR"),
        ColumnDef("location", "VARCHAR"),
        ColumnDef("sec_filings", "VARCHAR"),
        ColumnDef("company_site", "VARCHAR"),
        ColumnDef("active", "BOOLEAN", ("NOT NULL",)),
    ),
    primary_key=("ticker",),
)

PRICES_TABLE = TableSchema(
    name="prices",
    columns=(
        ColumnDef("ticker", "VARCHAR", ("NOT NULL",)),
        ColumnDef("date", "DATE", ("NOT NULL",)),
        ColumnDef("open", "DOUBLE"),
        ColumnDef("high", "DOUBLE"),
        ColumnDef("low", "DOUBLE"),
        ColumnDef("close", "DOUBLE"),
        ColumnDef("volume", "DOUBLE"),
        ColumnDef("close_unadjusted", "DOUBLE"),
        ColumnDef("close_split_adjusted", "DOUBLE"),
        ColumnDef("close_fully_adjusted", "DOUBLE"),
        ColumnDef("dollar_volume", "DOUBLE"),
        ColumnDef("last_updated", "DATE"),
        ColumnDef("active", "BOOLEAN", ("NOT NULL",)),
    ),
    primary_key=("ticker", "date"),
)

ACTIONS_TABLE = TableSchema(
    name="actions",
    columns=(
        ColumnDef("ticker", "VARCHAR", ("NOT NULL",)),
        ColumnDef("date", "DATE", ("NOT NULL",)),
        ColumnDef("dividend_factor", "DOUBLE", ("NOT NULL",)),
        ColumnDef("split_factor", "DOUBLE", ("NOT NULL",)),
        ColumnDef("active", "BOOLEAN", ("NOT NULL",)),
    ),
    primary_key=("ticker", "date"),
)

MONTHLY_TABLE = TableSchema(
    name="monthly",
    columns=(
        ColumnDef("ticker", "VARCHAR", ("NOT NULL",)),
        ColumnDef("date_open", "DATE", ("NOT NULL",)),
        ColumnDef("date_close", "DATE", ("NOT NULL",)),
        ColumnDef("open_split_adjusted", "DOUBLE"),
        ColumnDef("close", "DOUBLE"),
        ColumnDef("close_split_adjusted", "DOUBLE"),
        ColumnDef("close_fully_adjusted", "DOUBLE"),
        ColumnDef("dollar_volume", "DOUBLE"),
        ColumnDef("sum_relative_move", "DOUBLE"),
        ColumnDef("num_samples", "INTEGER", ("NOT NULL",)),
        ColumnDef("active", "BOOLEAN", ("NOT NULL",)),
    ),
    primary_key=("ticker", "date_open"),
)

DATASET_METADATA_TABLE = TableSchema(
    name="dataset_metadata",
    columns=(
        ColumnDef("key", "VARCHAR", ("NOT NULL",)),
        ColumnDef("value", "VARCHAR"),
    ),
    primary_key=("key",),
)

ALL_TABLES: tuple[TableSchema, ...] = (
    TICKERS_TABLE,
    PRICES_TABLE,
    ACTIONS_TABLE,
    MONTHLY_TABLE,
    DATASET_METADATA_TABLE,
)


def ensure_schema(conn: DuckDBPyConnection) -> None:
    """Create every dataset table on ``conn``."""

    for table in ALL_TABLES:
        table.ensure(conn)


__all__ = [
    "ACTIONS_TABLE",
    "ALL_TABLES",
    "ColumnDef",
    "DATASET_METADATA_TABLE",
    "MONTHLY_TABLE",
    "PRICES_TABLE",
    "TICKERS_TABLE",
    "TableSchema",
    "ensure_schema",
]
