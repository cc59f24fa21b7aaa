"""Builders for table API payloads and bulk export archives used across tests."""

from __future__ import annotations

import io
import zipfile
from collections.abc import Callable, Sequence
from typing import Any

import httpx

from refdata.core.models import ACTION_SCHEMA, PRICE_SCHEMA, TICKER_SCHEMA, Schema
from refdata.core.tables import HttpClient, HttpConfig, RetryConfig

BASE_URL = "https://test.local/api/v3"
API_PREFIX = "/api/v3/"


def page_json(schema: Schema, rows: Sequence[Sequence[Any]], cursor: str | None = None) -> dict[str, Any]:
    return {
        "datatable": {"data": [list(r) for r in rows], "columns": schema.to_json()},
        "meta": {"next_cursor_id": cursor},
    }


def zip_bytes(files: dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def ticker_row(
    ticker: str,
    table: str = "SEP",
    delisted: str = "N",
    permaticker: int = 1,
    **overrides: Any,
) -> list[Any]:
    values: dict[str, Any] = {
        "table": table,
        "permaticker": permaticker,
        "ticker": ticker,
        "name": f"{ticker} Inc.",
        "exchange": "NYSE",
        "isdelisted": delisted,
        "category": "Domestic Common Stock",
        "cusips": "123456789",
        "siccode": 3571,
        "sicsector": "Manufacturing",
        "sicindustry": "Electronic Computers",
        "famasector": None,
        "famaindustry": "Computers",
        "sector": "Technology",
        "industry": "Consumer Electronics",
        "scalemarketcap": "6 - Mega",
        "scalerevenue": "6 - Mega",
        "relatedtickers": None,
        "currency": "USD",
        "location": "California; U.S.A",
        "lastupdated": "2021-06-01",
        "firstadded": "2014-09-24",
        "firstpricedate": "1986-01-01",
        "lastpricedate": "2021-06-01",
        "firstquarter": "1996-09-30",
        "lastquarter": "2021-03-31",
        "secfilings": "https://www.sec.gov/",
        "companysite": "https://example.com",
    }
    values.update(overrides)
    return [values[f.name] for f in TICKER_SCHEMA]


def action_row(day: str, action: str, ticker: str, value: float | None = None) -> list[Any]:
    values = {
        "date": day,
        "action": action,
        "ticker": ticker,
        "name": f"{ticker} Inc.",
        "value": value,
        "contraticker": None,
        "contraname": None,
    }
    return [values[f.name] for f in ACTION_SCHEMA]


class FakeApi:
    """In-process table API served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.path)
        if handler is None:
            return httpx.Response(404, json={"error": f"no route for {request.url.path}"})
        return handler(request)

    def route(self, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[API_PREFIX + path if not path.startswith("/") else path] = handler

    def add_pages(self, table: str, schema: Schema, pages: Sequence[Sequence[Sequence[Any]]]) -> None:
        """Serve ``pages`` for ``table``, chained by cursors "c1", "c2", ..."""

        def handler(request: httpx.Request) -> httpx.Response:
            cursor = request.url.params.get("qopts.cursor_id")
            index = int(cursor[1:]) if cursor else 0
            next_cursor = f"c{index + 1}" if index + 1 < len(pages) else None
            return httpx.Response(200, json=page_json(schema, pages[index], next_cursor))

        self.route(f"datatables/{table}.json", handler)

    def add_tickers(self, rows: Sequence[Sequence[Any]]) -> None:
        self.add_pages("SHARADAR/TICKERS", TICKER_SCHEMA, [rows])

    def add_actions(self, rows: Sequence[Sequence[Any]]) -> None:
        self.add_pages("SHARADAR/ACTIONS", ACTION_SCHEMA, [rows])

    def add_bulk(self, table: str, files: dict[str, str], status: str = "fresh") -> None:
        """Serve a bulk export of ``table`` holding ``files``."""

        name = table.split("/")[-1].lower()
        link = f"https://test.local/download/{name}.zip"

        def handle(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "datatable_bulk_download": {
                        "file": {
                            "link": None if status == "creating" else link,
                            "status": status,
                            "data_snapshot_time": "2021-06-02 01:02:03 UTC",
                        },
                        "datatable": {"last_refreshed_time": "2021-06-01 22:00:00 UTC"},
                    }
                },
            )

        self.route(f"datatables/{table}.json", handle)
        self.route(f"/download/{name}.zip", lambda request: httpx.Response(200, content=zip_bytes(files)))

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def client(self, max_retries: int = 0) -> HttpClient:
        return HttpClient(
            HttpConfig(base_url=BASE_URL, api_key="secret"),
            RetryConfig(max_retries=max_retries),
            transport=httpx.MockTransport(self),
            sleep=lambda seconds: None,
        )


PRICES_HEADER = ",".join(f.name for f in PRICE_SCHEMA)


def prices_csv(*rows: str) -> str:
    return "\n".join([PRICES_HEADER, *rows]) + "\n"


def price_line(ticker: str, day: int, close: float) -> str:
    return f"{ticker},2020-01-{day:02d},{close},{close},{close},{close},100,{close},{close},2020-02-01"


def serve_dataset(api: FakeApi) -> None:
    """Serve a small dataset: A (delisted, SEP) and B (SFP), plus prices of an unknown C."""

    api.add_tickers([ticker_row("A", table="SEP", delisted="Y", permaticker=1), ticker_row("B", table="SFP", permaticker=2)])
    api.add_actions(
        [
            action_row("2020-01-02", "dividend", "A", 1.0),
            action_row("2020-01-02", "split", "A", 2.0),
            action_row("2020-01-03", "delisted", "A"),
            action_row("2020-01-03", "split", "B", 2.0),
            action_row("2020-01-02", "delisted", "B"),
            action_row("2020-01-02", "split", "C", 2.0),
        ]
    )
    # Rows arrive unsorted.
    api.add_bulk(
        "SHARADAR/SEP",
        {"SEP.csv": prices_csv(price_line("A", 3, 4.0), price_line("C", 1, 9.0), price_line("A", 1, 5.0), price_line("A", 2, 4.0))},
    )
    api.add_bulk(
        "SHARADAR/SFP",
        {"SFP.csv": prices_csv(price_line("B", 2, 1.0), price_line("B", 1, 1.0), price_line("B", 3, 1.0))},
    )
