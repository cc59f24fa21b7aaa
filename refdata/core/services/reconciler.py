"""
Reconciliation of corporate actions against the price series.

Raw actions are a sparse event log: they may predate the first price, several
may fall between two price samples, and terminal events may be missing or
repeated. The reconciler folds them into one ActionRecord per price date at
which something changed, so that every price is attributable to explicit
cumulative adjustments.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence

from refdata.core.models.actions import DELISTING_ACTIONS, DIVIDEND_ACTIONS, ActionRecord, ActionType, RawAction
from refdata.core.models.prices import Price


def reconcile_actions(prices: Sequence[Price], raw_actions: Sequence[RawAction], active: bool) -> list[ActionRecord]:
    """
    Merge a ticker's date-sorted prices and actions into adjustment records.

    Args:
        prices: daily prices sorted by date.
        raw_actions: raw actions sorted by date.
        active: the ticker's authoritative final status.

    Returns:
        Records in ascending date order. The first is dated at the first price,
        and the last one's ``active`` equals ``active``. Empty when there are
        no prices.
    """

    if not prices:
        return []

    records: list[ActionRecord] = []
    prev_close = 0.0
    j = 0
    for i, price in enumerate(prices):
        dividend_factor = 1.0
        split_factor = 1.0
        listed = True
        has_actions = False

        while j < len(raw_actions) and raw_actions[j].date <= price.date:
            action = raw_actions[j]
            j += 1
            if action.action == ActionType.LISTED:
                listed = True
                has_actions = True
            elif action.action in DELISTING_ACTIONS:
                listed = False
                has_actions = True
            elif action.action in DIVIDEND_ACTIONS:
                # Nothing to compute against before the first price.
                if prev_close > 0:
                    dividend_factor *= (prev_close - action.value) / prev_close
                    has_actions = True
            elif action.action == ActionType.SPLIT:
                if action.value > 0:
                    split_factor *= 1.0 / action.value
                    has_actions = True

        prev_close = price.close_split_adjusted

        # The first price implies a listing even without an explicit event.
        if i == 0 or has_actions:
            records.append(
                ActionRecord(
                    date=price.date,
                    dividend_factor=dividend_factor,
                    split_factor=split_factor,
                    active=listed,
                )
            )

    last_price = prices[-1]
    last = records[-1]
    if last.active != active:
        if last.date == last_price.date:
            records[-1] = dataclasses.replace(last, active=active)
        else:
            records.append(ActionRecord(date=last_price.date, active=active))
    return records


def mark_active(prices: Sequence[Price], records: Sequence[ActionRecord]) -> list[Price]:
    """Stamp each price with the listing state of the latest record at or before it."""

    stamped: list[Price] = []
    active = True
    j = 0
    for price in prices:
        while j < len(records) and records[j].date <= price.date:
            active = records[j].active
            j += 1
        stamped.append(price if price.active == active else dataclasses.replace(price, active=active))
    return stamped


__all__ = ["mark_active", "reconcile_actions"]
