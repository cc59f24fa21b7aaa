"""Daily price rows (the SEP and SFP tables)."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date

from refdata.core.exceptions import FieldDecodeError
from refdata.core.models.schema import Schema, Value, check_row
from refdata.core.models.values import (
    decode_cell,
    decode_field,
    parse_date,
    parse_num,
    to_date,
    to_num,
    to_required_date,
    to_str,
)

PRICE_SCHEMA = Schema.of(
    ("ticker", "text"),
    ("date", "Date"),
    ("open", "double"),
    ("high", "double"),
    ("low", "double"),
    ("close", "double"),
    ("volume", "double"),
    ("closeadj", "double"),
    ("closeunadj", "double"),
    ("lastupdated", "Date"),
)

_NUMERIC_COLUMNS = ("open", "high", "low", "close", "volume", "closeadj", "closeunadj")


@dataclass(slots=True, frozen=True)
class Price:
    """A row in a daily price table.

    OHLCV values are adjusted for stock splits and stock dividends, but not for
    cash dividends or spinoffs. ``close_fully_adjusted`` is adjusted for all of
    them. ``active`` is the listing state in effect on ``date``; downloads leave
    it set until actions are reconciled.
    """

    SCHEMA = PRICE_SCHEMA

    ticker: str
    date: date
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    close: float = 0.0
    volume: float = 0.0
    close_unadjusted: float = 0.0
    close_fully_adjusted: float = 0.0
    last_updated: date | None = None
    active: bool = True

    @property
    def close_split_adjusted(self) -> float:
        return self.close

    @property
    def dollar_volume(self) -> float:
        return self.close * self.volume

    @classmethod
    def decode(cls, values: Sequence[Value], schema: Schema) -> Price:
        index = check_row(PRICE_SCHEMA, values, schema)

        def num(name: str) -> float:
            return decode_field(values, index, name, to_num, "a number")

        return cls(
            ticker=decode_field(values, index, "ticker", to_str, "a string"),
            date=decode_field(values, index, "date", to_required_date, "a date string"),
            open=num("open"),
            high=num("high"),
            low=num("low"),
            close=num("close"),
            volume=num("volume"),
            close_unadjusted=num("closeunadj"),
            close_fully_adjusted=num("closeadj"),
            last_updated=decode_field(values, index, "lastupdated", to_date, "a date string"),
        )

    @classmethod
    def from_csv(cls, row: Sequence[str], column_map: Mapping[str, int]) -> Price:
        """Build a Price from a bulk export CSV row.

        ``column_map`` is {column name -> position}, as produced by
        ``PRICE_SCHEMA.map_csv_columns(header)``.
        """

        if len(row) != len(column_map):
            raise FieldDecodeError(f"expected {len(column_map)} columns, received {len(row)}: {list(row)!r}")

        nums = {name: decode_cell(row, column_map, name, parse_num, "a number") for name in _NUMERIC_COLUMNS}
        return cls(
            ticker=row[column_map["ticker"]],
            date=decode_cell(row, column_map, "date", parse_date, "a date string"),
            open=nums["open"],
            high=nums["high"],
            low=nums["low"],
            close=nums["close"],
            volume=nums["volume"],
            close_unadjusted=nums["closeunadj"],
            close_fully_adjusted=nums["closeadj"],
            last_updated=decode_cell(row, column_map, "lastupdated", parse_date, "a date string"),
        )


@dataclass(slots=True, frozen=True)
class MonthlyPrice:
    """A calendar month of daily prices, resampled into one row."""

    date_open: date
    date_close: date
    open_split_adjusted: float
    close: float
    close_split_adjusted: float
    close_fully_adjusted: float
    dollar_volume: float
    # Sum of |close - previous close| / previous close within the month.
    sum_relative_move: float
    num_samples: int
    active: bool


__all__ = ["PRICE_SCHEMA", "MonthlyPrice", "Price"]
