"""Corporate action rows (the ACTIONS table) and reconciled action records."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from enum import Enum

from refdata.core.models.schema import Schema, Value, check_row
from refdata.core.models.values import decode_field, to_num, to_required_date, to_str


class ActionType(str, Enum):
    """Kinds of corporate action events."""

    UNKNOWN = "unknown"
    ACQUISITION_BY = "acquisitionby"
    ACQUISITION_OF = "acquisitionof"
    BANKRUPTCY_LIQUIDATION = "bankruptcyliquidation"
    DELISTED = "delisted"
    DIVIDEND = "dividend"  # cash dividend, adjusted for splits
    INITIATED = "initiated"
    LISTED = "listed"
    MERGER_FROM = "mergerfrom"
    MERGER_TO = "mergerto"
    REGULATORY_DELISTING = "regulatorydelisting"
    RELATION = "relation"
    SPINOFF = "spinoff"
    SPINOFF_DIVIDEND = "spinoffdividend"
    SPLIT = "split"  # stock split or stock dividend
    SPUNOFF_FROM = "spunofffrom"
    TICKER_CHANGE_FROM = "tickerchangefrom"
    TICKER_CHANGE_TO = "tickerchangeto"
    VOLUNTARY_DELISTING = "voluntarydelisting"

    @classmethod
    def parse(cls, text: str) -> ActionType:
        """Unrecognised names map to UNKNOWN rather than failing."""

        try:
            return cls(text)
        except ValueError:
            return cls.UNKNOWN


# Actions that affect reconciliation, in the order they are requested.
RELEVANT_ACTIONS: tuple[ActionType, ...] = (
    ActionType.ACQUISITION_BY,
    ActionType.DELISTED,
    ActionType.DIVIDEND,
    ActionType.LISTED,
    ActionType.MERGER_FROM,
    ActionType.REGULATORY_DELISTING,
    ActionType.SPINOFF_DIVIDEND,
    ActionType.SPLIT,
    ActionType.VOLUNTARY_DELISTING,
)

DELISTING_ACTIONS = frozenset(
    {
        ActionType.ACQUISITION_BY,
        ActionType.MERGER_FROM,
        ActionType.REGULATORY_DELISTING,
        ActionType.VOLUNTARY_DELISTING,
        ActionType.DELISTED,
    }
)

DIVIDEND_ACTIONS = frozenset({ActionType.DIVIDEND, ActionType.SPINOFF_DIVIDEND})


ACTION_SCHEMA = Schema.of(
    ("date", "Date"),
    ("action", "String"),
    ("ticker", "String"),
    ("name", "String"),
    ("value", "BigDecimal(20,5)"),
    ("contraticker", "String"),
    ("contraname", "String"),
)


@dataclass(slots=True, frozen=True)
class RawAction:
    """A row in the ACTIONS table.

    ``value`` depends on the action:
    - DIVIDEND: split adjusted cash dividend amount;
    - SPINOFF_DIVIDEND: dollar value of the spun off shares per parent share;
    - SPLIT: number of resulting shares per original share.
    """

    SCHEMA = ACTION_SCHEMA

    date: date
    action: ActionType
    ticker: str
    name: str = ""
    value: float = 0.0
    contra_ticker: str = ""
    contra_name: str = ""

    def is_any(self, *types: ActionType) -> bool:
        return self.action in types

    @classmethod
    def decode(cls, values: Sequence[Value], schema: Schema) -> RawAction:
        index = check_row(ACTION_SCHEMA, values, schema)

        def text(name: str) -> str:
            return decode_field(values, index, name, to_str, "a string")

        return cls(
            date=decode_field(values, index, "date", to_required_date, "a date string"),
            action=ActionType.parse(text("action")),
            ticker=text("ticker"),
            name=text("name"),
            value=decode_field(values, index, "value", to_num, "a number"),
            contra_ticker=text("contraticker"),
            contra_name=text("contraname"),
        )


@dataclass(slots=True, frozen=True)
class ActionRecord:
    """Reconciled adjustment event for one ticker on one price date."""

    date: date
    dividend_factor: float = 1.0
    split_factor: float = 1.0
    active: bool = True


__all__ = [
    "ACTION_SCHEMA",
    "ActionRecord",
    "ActionType",
    "DELISTING_ACTIONS",
    "DIVIDEND_ACTIONS",
    "RELEVANT_ACTIONS",
    "RawAction",
]
