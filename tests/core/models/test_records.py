"""Tests for decoding ticker, action and price rows."""

from __future__ import annotations

from datetime import date

import pytest
from factories import action_row, ticker_row

from refdata.core.exceptions import FieldDecodeError, SchemaMismatchError
from refdata.core.models import (
    ACTION_SCHEMA,
    PRICE_SCHEMA,
    TICKER_SCHEMA,
    ActionType,
    Price,
    RawAction,
    Scale,
    Schema,
    Ticker,
)
from refdata.core.models.values import to_bool, to_date, to_num, to_str, to_str_list


class TestValues:
    def test_missing_values_coerce_to_zero_values(self) -> None:
        assert to_str(None) == ""
        assert to_num(None) == 0.0
        assert to_date(None) is None
        assert to_bool(None) is False
        assert to_str_list(None) == []

    def test_numbers(self) -> None:
        assert to_num(3) == 3.0
        assert to_num(2.5) == 2.5
        with pytest.raises(TypeError):
            to_num("2.5")
        with pytest.raises(TypeError):
            to_num(True)

    def test_dates_drop_time_suffix(self) -> None:
        assert to_date("2020-01-02") == date(2020, 1, 2)
        assert to_date("2020-01-02T10:00:00") == date(2020, 1, 2)
        assert to_date("") is None

    def test_lists_are_space_separated(self) -> None:
        assert to_str_list("AAA BBB  CCC") == ["AAA", "BBB", "CCC"]


class TestTicker:
    def test_decode_out_of_order_schema_with_extra_column_and_null(self) -> None:
        row = ticker_row(
            "AAPL",
            delisted="Y",
            permaticker=199059,
            sector=None,
            scalemarketcap="4 - Mid",
            relatedtickers="AAPL1 AAPL2",
        )
        fields = list(TICKER_SCHEMA)
        values = list(row)
        # Reverse the column order and add a column the record does not know.
        schema = Schema(tuple(reversed(fields)) + (Schema.of(("newcolumn", "String")).fields[0],))
        values = list(reversed(values)) + ["ignored"]

        ticker = Ticker.decode(values, schema)

        assert ticker.ticker == "AAPL"
        assert ticker.permaticker == 199059
        assert ticker.table_name == "SEP"
        assert ticker.sector == ""
        assert ticker.fama_sector == ""
        assert ticker.is_delisted is True
        assert ticker.active is False
        assert ticker.scale_market_cap is Scale.MID
        assert ticker.scale_revenue is Scale.MEGA
        assert ticker.related_tickers == ["AAPL1", "AAPL2"]
        assert ticker.cusips == ["123456789"]
        assert ticker.sic_code == 3571
        assert ticker.first_added == date(2014, 9, 24)
        assert ticker.last_quarter == date(2021, 3, 31)

    def test_to_meta(self) -> None:
        ticker = Ticker.decode(ticker_row("MSFT", table="SFP"), TICKER_SCHEMA)

        meta = ticker.to_meta()

        assert meta.source == "SFP"
        assert meta.name == "MSFT Inc."
        assert meta.exchange == "NYSE"
        assert meta.active is True

    def test_zero_permaticker_is_rejected(self) -> None:
        with pytest.raises(FieldDecodeError) as exc_info:
            Ticker.decode(ticker_row("BAD", permaticker=0), TICKER_SCHEMA)

        assert exc_info.value.field == "permaticker"

    def test_wrong_type_names_the_field(self) -> None:
        with pytest.raises(FieldDecodeError) as exc_info:
            Ticker.decode(ticker_row("BAD", siccode="not a number"), TICKER_SCHEMA)

        assert exc_info.value.field == "siccode"
        assert "siccode" in str(exc_info.value)

    def test_unknown_scale_is_rejected(self) -> None:
        with pytest.raises(FieldDecodeError):
            Ticker.decode(ticker_row("BAD", scalerevenue="7 - Giga"), TICKER_SCHEMA)

    def test_missing_required_column(self) -> None:
        schema = Schema(tuple(f for f in TICKER_SCHEMA if f.name != "ticker"))
        values = [v for f, v in zip(TICKER_SCHEMA, ticker_row("X"), strict=True) if f.name != "ticker"]

        with pytest.raises(SchemaMismatchError):
            Ticker.decode(values, schema)


class TestRawAction:
    def test_decode(self) -> None:
        action = RawAction.decode(action_row("2020-02-01", "split", "AAPL", 4.0), ACTION_SCHEMA)

        assert action.date == date(2020, 2, 1)
        assert action.action is ActionType.SPLIT
        assert action.value == 4.0
        assert action.contra_ticker == ""
        assert action.is_any(ActionType.SPLIT, ActionType.DIVIDEND)

    def test_unknown_action_kind(self) -> None:
        action = RawAction.decode(action_row("2020-02-01", "somethingnew", "AAPL"), ACTION_SCHEMA)

        assert action.action is ActionType.UNKNOWN
        assert action.value == 0.0

    def test_date_is_required(self) -> None:
        with pytest.raises(FieldDecodeError):
            RawAction.decode(action_row(None, "split", "AAPL", 2.0), ACTION_SCHEMA)


class TestPrice:
    def test_decode(self) -> None:
        values = ["AAPL", "2021-06-01", 1.0, 2.0, 0.5, 1.5, 1000, 1.4, 3.0, "2021-06-02"]

        price = Price.decode(values, PRICE_SCHEMA)

        assert price.ticker == "AAPL"
        assert price.date == date(2021, 6, 1)
        assert price.close == 1.5
        assert price.close_split_adjusted == 1.5
        assert price.close_fully_adjusted == 1.4
        assert price.close_unadjusted == 3.0
        assert price.dollar_volume == 1500.0
        assert price.last_updated == date(2021, 6, 2)

    def test_from_csv_with_reordered_header(self) -> None:
        header = ["date", "ticker", "open", "high", "low", "close", "volume", "closeadj", "closeunadj", "lastupdated", "x"]
        column_map = PRICE_SCHEMA.map_csv_columns(header)
        row = ["2021-06-01", "AAPL", "1", "2", "0.5", "1.5", "1000", "1.4", "3", "2021-06-02", "extra"]

        price = Price.from_csv(row, column_map)

        assert price.ticker == "AAPL"
        assert price.date == date(2021, 6, 1)
        assert price.high == 2.0
        assert price.volume == 1000.0

    def test_from_csv_rejects_bad_values(self) -> None:
        column_map = PRICE_SCHEMA.map_csv_columns([f.name for f in PRICE_SCHEMA])

        with pytest.raises(FieldDecodeError) as exc_info:
            Price.from_csv(["AAPL", "2021-06-01", "x", "2", "0.5", "1.5", "1000", "1.4", "3", "2021-06-02"], column_map)
        assert exc_info.value.field == "open"

        with pytest.raises(FieldDecodeError):
            Price.from_csv(["AAPL", "2021-06-01"], column_map)
