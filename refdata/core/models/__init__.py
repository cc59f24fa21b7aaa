"""Record types decoded from table rows."""

from refdata.core.models.actions import (
    ACTION_SCHEMA,
    RELEVANT_ACTIONS,
    ActionRecord,
    ActionType,
    RawAction,
)
from refdata.core.models.prices import PRICE_SCHEMA, MonthlyPrice, Price
from refdata.core.models.schema import RowDecodable, Schema, SchemaField, Value
from refdata.core.models.tickers import TICKER_SCHEMA, Scale, Ticker, TickerMeta

__all__ = [
    "ACTION_SCHEMA",
    "PRICE_SCHEMA",
    "RELEVANT_ACTIONS",
    "TICKER_SCHEMA",
    "ActionRecord",
    "ActionType",
    "MonthlyPrice",
    "Price",
    "RawAction",
    "RowDecodable",
    "Scale",
    "Schema",
    "SchemaField",
    "Ticker",
    "TickerMeta",
    "Value",
]
