"""Ticker metadata rows (the TICKERS table)."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import IntEnum

from refdata.core.exceptions import FieldDecodeError
from refdata.core.models.schema import Schema, Value, check_row
from refdata.core.models.values import decode_field, to_bool, to_date, to_num, to_str, to_str_list


class Scale(IntEnum):
    """Dollar value scale of market cap or revenue.

    1 - Nano < $50m; 2 - Micro < $300m; 3 - Small < $2bn; 4 - Mid < $10bn;
    5 - Large < $200bn; 6 - Mega >= $200bn.
    """

    UNSET = 0
    NANO = 1
    MICRO = 2
    SMALL = 3
    MID = 4
    LARGE = 5
    MEGA = 6

    @classmethod
    def parse(cls, value: Value) -> Scale:
        if value is None or value == "":
            return cls.UNSET
        if not isinstance(value, str):
            raise TypeError(f"expected a scale string but found {type(value).__name__}: {value!r}")
        scale = _SCALES.get(value)
        if scale is None:
            raise ValueError(f"unknown scale {value!r}")
        return scale


_SCALES = {
    "1 - Nano": Scale.NANO,
    "2 - Micro": Scale.MICRO,
    "3 - Small": Scale.SMALL,
    "4 - Mid": Scale.MID,
    "5 - Large": Scale.LARGE,
    "6 - Mega": Scale.MEGA,
}


TICKER_SCHEMA = Schema.of(
    ("table", "String"),
    ("permaticker", "Integer"),
    ("ticker", "String"),
    ("name", "String"),
    ("exchange", "String"),
    ("isdelisted", "String"),
    ("category", "String"),
    ("cusips", "String"),
    ("siccode", "Integer"),
    ("sicsector", "String"),
    ("sicindustry", "String"),
    ("famasector", "String"),
    ("famaindustry", "String"),
    ("sector", "String"),
    ("industry", "String"),
    ("scalemarketcap", "String"),
    ("scalerevenue", "String"),
    ("relatedtickers", "String"),
    ("currency", "String"),
    ("location", "String"),
    ("lastupdated", "Date"),
    ("firstadded", "Date"),
    ("firstpricedate", "Date"),
    ("lastpricedate", "Date"),
    ("firstquarter", "String"),
    ("lastquarter", "String"),
    ("secfilings", "String"),
    ("companysite", "String"),
)


@dataclass(slots=True, frozen=True)
class TickerMeta:
    """Dataset-level view of a ticker."""

    source: str = ""
    exchange: str = ""
    name: str = ""
    category: str = ""
    sector: str = ""
    industry: str = ""
    location: str = ""
    sec_filings: str = ""
    company_site: str = ""
    active: bool = True


@dataclass(slots=True, frozen=True)
class Ticker:
    """A row in the TICKERS table."""

    SCHEMA = TICKER_SCHEMA

    table_name: str
    permaticker: int
    ticker: str  # uniquified by the vendor if reused
    name: str = ""
    exchange: str = ""
    is_delisted: bool = False
    category: str = ""  # e.g. "Domestic", "ADR"
    cusips: list[str] = field(default_factory=list)
    sic_code: int = 0
    sic_sector: str = ""
    sic_industry: str = ""
    fama_sector: str = ""
    fama_industry: str = ""
    sector: str = ""
    industry: str = ""
    scale_market_cap: Scale = Scale.UNSET
    scale_revenue: Scale = Scale.UNSET
    related_tickers: list[str] = field(default_factory=list)
    currency: str = ""
    location: str = ""
    last_updated: date | None = None
    first_added: date | None = None
    first_price_date: date | None = None  # approx. IPO, min 1986-01-01
    last_price_date: date | None = None
    first_quarter: date | None = None
    last_quarter: date | None = None
    sec_filings: str = ""
    company_site: str = ""

    @property
    def active(self) -> bool:
        return not self.is_delisted

    @classmethod
    def decode(cls, values: Sequence[Value], schema: Schema) -> Ticker:
        index = check_row(TICKER_SCHEMA, values, schema)

        def text(name: str) -> str:
            return decode_field(values, index, name, to_str, "a string")

        def day(name: str) -> date | None:
            return decode_field(values, index, name, to_date, "a date string")

        def words(name: str) -> list[str]:
            return decode_field(values, index, name, to_str_list, "a space-separated string list")

        def scale(name: str) -> Scale:
            return decode_field(values, index, name, Scale.parse, "a scale string")

        permaticker = decode_field(values, index, "permaticker", to_num, "a number")
        if permaticker == 0.0:
            raise FieldDecodeError(
                f"permaticker is invalid: {values[index['permaticker']]!r}",
                field="permaticker",
                value=values[index["permaticker"]],
            )

        return cls(
            table_name=text("table"),
            permaticker=int(permaticker),
            ticker=text("ticker"),
            name=text("name"),
            exchange=text("exchange"),
            is_delisted=decode_field(values, index, "isdelisted", to_bool, "a Y/N string"),
            category=text("category"),
            cusips=words("cusips"),
            sic_code=int(decode_field(values, index, "siccode", to_num, "a number")),
            sic_sector=text("sicsector"),
            sic_industry=text("sicindustry"),
            fama_sector=text("famasector"),
            fama_industry=text("famaindustry"),
            sector=text("sector"),
            industry=text("industry"),
            scale_market_cap=scale("scalemarketcap"),
            scale_revenue=scale("scalerevenue"),
            related_tickers=words("relatedtickers"),
            currency=text("currency"),
            location=text("location"),
            last_updated=day("lastupdated"),
            first_added=day("firstadded"),
            first_price_date=day("firstpricedate"),
            last_price_date=day("lastpricedate"),
            first_quarter=day("firstquarter"),
            last_quarter=day("lastquarter"),
            sec_filings=text("secfilings"),
            company_site=text("companysite"),
        )

    def to_meta(self) -> TickerMeta:
        return TickerMeta(
            source=self.table_name,
            exchange=self.exchange,
            name=self.name,
            category=self.category,
            sector=self.sector,
            industry=self.industry,
            location=self.location,
            sec_filings=self.sec_filings,
            company_site=self.company_site,
            active=self.active,
        )


__all__ = ["Scale", "TICKER_SCHEMA", "Ticker", "TickerMeta"]
