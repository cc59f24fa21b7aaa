"""Monthly resampling of daily price series."""

from __future__ import annotations

from collections.abc import Sequence
from itertools import groupby, pairwise

from refdata.core.models.prices import MonthlyPrice, Price


def compute_monthly(prices: Sequence[Price]) -> list[MonthlyPrice]:
    """
    Resample a ticker's date-sorted daily prices into calendar months.

    The month opens at the first sample's split-adjusted close and closes at
    the last sample, whose listing state the row inherits. Relative moves are
    summed between consecutive samples of the same month only, so a month's
    first sample contributes nothing.
    """

    monthly: list[MonthlyPrice] = []
    for _, group in groupby(prices, key=lambda p: (p.date.year, p.date.month)):
        days = list(group)
        first, last = days[0], days[-1]
        relative_move = sum(
            abs(curr.close_split_adjusted - prev.close_split_adjusted) / prev.close_split_adjusted
            for prev, curr in pairwise(days)
            if prev.close_split_adjusted > 0
        )
        monthly.append(
            MonthlyPrice(
                date_open=first.date,
                date_close=last.date,
                open_split_adjusted=first.close_split_adjusted,
                close=last.close_unadjusted,
                close_split_adjusted=last.close_split_adjusted,
                close_fully_adjusted=last.close_fully_adjusted,
                dollar_volume=sum(p.dollar_volume for p in days),
                sum_relative_move=relative_move,
                num_samples=len(days),
                active=last.active,
            )
        )
    return monthly


__all__ = ["compute_monthly"]
