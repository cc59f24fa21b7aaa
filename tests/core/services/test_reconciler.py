"""Tests for reconciling raw actions against prices."""

from __future__ import annotations

from datetime import date

import pytest

from refdata.core.models import ActionRecord, ActionType, Price, RawAction
from refdata.core.services import mark_active, reconcile_actions


def _prices(*closes: float, ticker: str = "A") -> list[Price]:
    return [Price(ticker=ticker, date=date(2020, 1, day), close=close) for day, close in enumerate(closes, start=1)]


def _action(day: int, action: ActionType, value: float = 0.0) -> RawAction:
    return RawAction(date=date(2020, 1, day), action=action, ticker="A", value=value)


def test_no_prices_yields_no_records() -> None:
    assert reconcile_actions([], [_action(1, ActionType.SPLIT, 2.0)], active=True) == []


def test_first_price_always_starts_the_series() -> None:
    records = reconcile_actions(_prices(10.0, 11.0, 12.0), [], active=True)

    assert records == [ActionRecord(date=date(2020, 1, 1))]


def test_dividend_and_split_on_the_same_day_compound() -> None:
    actions = [
        _action(2, ActionType.DIVIDEND, 1.0),
        _action(2, ActionType.SPLIT, 2.0),
    ]

    records = reconcile_actions(_prices(5.0, 4.0, 4.0), actions, active=True)

    assert records == [
        ActionRecord(date=date(2020, 1, 1)),
        ActionRecord(date=date(2020, 1, 2), dividend_factor=pytest.approx(0.8), split_factor=0.5),
    ]


def test_actions_between_prices_land_on_the_next_price() -> None:
    prices = [
        Price(ticker="A", date=date(2020, 1, 1), close=10.0),
        Price(ticker="A", date=date(2020, 1, 6), close=10.0),
    ]
    actions = [_action(3, ActionType.SPLIT, 2.0), _action(4, ActionType.SPLIT, 2.0)]

    records = reconcile_actions(prices, actions, active=True)

    assert records[-1] == ActionRecord(date=date(2020, 1, 6), split_factor=0.25)


def test_dividend_before_first_price_is_dropped() -> None:
    actions = [_action(1, ActionType.DIVIDEND, 0.5)]
    prices = [Price(ticker="A", date=date(2020, 1, 2), close=10.0)]

    records = reconcile_actions(prices, actions, active=True)

    assert records == [ActionRecord(date=date(2020, 1, 2))]


def test_spinoff_dividend_uses_previous_close() -> None:
    records = reconcile_actions(_prices(20.0, 15.0), [_action(2, ActionType.SPINOFF_DIVIDEND, 5.0)], active=True)

    assert records[1].dividend_factor == pytest.approx(0.75)


def test_non_positive_split_is_ignored() -> None:
    records = reconcile_actions(_prices(10.0, 10.0), [_action(2, ActionType.SPLIT, 0.0)], active=True)

    assert records == [ActionRecord(date=date(2020, 1, 1))]


def test_irrelevant_actions_are_ignored() -> None:
    actions = [_action(2, ActionType.TICKER_CHANGE_TO), _action(2, ActionType.UNKNOWN)]

    records = reconcile_actions(_prices(10.0, 10.0), actions, active=True)

    assert len(records) == 1


def test_delisting_then_relisting() -> None:
    actions = [_action(2, ActionType.DELISTED), _action(3, ActionType.LISTED)]

    records = reconcile_actions(_prices(1.0, 1.0, 1.0), actions, active=True)

    assert [(r.date.day, r.active) for r in records] == [(1, True), (2, False), (3, True)]


@pytest.mark.parametrize("kind", [ActionType.ACQUISITION_BY, ActionType.MERGER_FROM, ActionType.VOLUNTARY_DELISTING])
def test_delisting_kinds(kind: ActionType) -> None:
    records = reconcile_actions(_prices(1.0, 1.0), [_action(2, kind)], active=False)

    assert records[-1] == ActionRecord(date=date(2020, 1, 2), active=False)


def test_missing_final_delisting_is_appended_at_last_price() -> None:
    records = reconcile_actions(_prices(1.0, 1.0, 1.0), [], active=False)

    assert records == [
        ActionRecord(date=date(2020, 1, 1)),
        ActionRecord(date=date(2020, 1, 3), active=False),
    ]


def test_final_record_on_last_price_is_repaired_in_place() -> None:
    actions = [_action(3, ActionType.DELISTED)]

    records = reconcile_actions(_prices(1.0, 1.0, 1.0), actions, active=True)

    assert records == [
        ActionRecord(date=date(2020, 1, 1)),
        ActionRecord(date=date(2020, 1, 3), active=True),
    ]


def test_repair_keeps_factors() -> None:
    actions = [_action(2, ActionType.SPLIT, 4.0)]

    records = reconcile_actions(_prices(1.0, 1.0), actions, active=False)

    assert records[-1] == ActionRecord(date=date(2020, 1, 2), split_factor=0.25, active=False)


def test_actions_after_last_price_are_ignored() -> None:
    actions = [_action(20, ActionType.SPLIT, 2.0), _action(21, ActionType.DELISTED)]

    records = reconcile_actions(_prices(1.0, 1.0), actions, active=True)

    assert records == [ActionRecord(date=date(2020, 1, 1))]


def test_action_before_first_price_starts_series_at_first_price() -> None:
    actions = [RawAction(date=date(2019, 12, 31), action=ActionType.LISTED, ticker="A")]

    records = reconcile_actions(_prices(1.0, 1.0), actions, active=True)

    assert records == [ActionRecord(date=date(2020, 1, 1))]


def test_seed_scenario() -> None:
    def prices(ticker: str) -> list[Price]:
        return [
            Price(ticker=ticker, date=date(2020, 1, day), close=close)
            for day, close in ((1, 10.0), (3, 5.0), (5, 5.0))
        ]

    def action(ticker: str, day: int, kind: ActionType, value: float = 0.0) -> RawAction:
        return RawAction(date=date(2020, 1, day), action=kind, ticker=ticker, value=value)

    # A lost its listing without a delisting event.
    a = reconcile_actions(
        prices("A"),
        [action("A", 2, ActionType.DIVIDEND, 2.0), action("A", 2, ActionType.SPLIT, 2.0)],
        active=False,
    )
    b = reconcile_actions(
        prices("B"),
        [
            action("B", 2, ActionType.DELISTED),
            action("B", 4, ActionType.LISTED),
            action("B", 4, ActionType.SPLIT, 2.0),
        ],
        active=True,
    )
    c = reconcile_actions(prices("C"), [], active=True)

    assert a == [
        ActionRecord(date=date(2020, 1, 1)),
        ActionRecord(date=date(2020, 1, 3), dividend_factor=pytest.approx(0.8), split_factor=0.5),
        ActionRecord(date=date(2020, 1, 5), active=False),
    ]
    assert b == [
        ActionRecord(date=date(2020, 1, 1)),
        ActionRecord(date=date(2020, 1, 3), active=False),
        ActionRecord(date=date(2020, 1, 5), split_factor=0.5),
    ]
    assert c == [ActionRecord(date=date(2020, 1, 1))]


def test_mark_active_follows_the_latest_record() -> None:
    prices = _prices(1.0, 1.0, 1.0, 1.0)
    records = [
        ActionRecord(date=date(2020, 1, 1)),
        ActionRecord(date=date(2020, 1, 2), active=False),
        ActionRecord(date=date(2020, 1, 4)),
    ]

    stamped = mark_active(prices, records)

    assert [p.active for p in stamped] == [True, False, False, True]
    assert stamped[0] is prices[0]
    assert [p.date for p in stamped] == [p.date for p in prices]


def test_mark_active_reactivates_stale_flags() -> None:
    prices = [Price(ticker="A", date=date(2020, 1, 1), close=1.0, active=False)]

    assert mark_active(prices, [ActionRecord(date=date(2020, 1, 1))])[0].active is True
