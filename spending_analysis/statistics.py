"""Spending statistics over transaction magnitudes.

All functions are pure and never raise on degenerate input: empty (or too
small) transaction sets map to zeroed results instead. Signs are ignored; a
refund of ``-40`` and a purchase of ``40`` contribute the same amount.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime

from .models import SpendingStats, Transaction

_SECONDS_PER_DAY = 24 * 60 * 60

# Below this many points the index-based quartiles are meaningless.
_MIN_OUTLIER_SAMPLE = 4


def _magnitudes(transactions: Sequence[Transaction]) -> list[float]:
    return [t.magnitude for t in transactions]


def calculate_spending_stats(transactions: Sequence[Transaction]) -> SpendingStats:
    """Return total, average, median, min, max and count of magnitudes.

    The median of an even-sized set is the mean of the two middle values.
    """

    if not transactions:
        return SpendingStats()

    amounts = sorted(_magnitudes(transactions))
    n = len(amounts)
    total = math.fsum(amounts)
    mid = n // 2
    median = (amounts[mid - 1] + amounts[mid]) / 2 if n % 2 == 0 else amounts[mid]

    return SpendingStats(
        total=total,
        average=total / n,
        median=median,
        min=amounts[0],
        max=amounts[-1],
        count=n,
    )


def calculate_stats_by_category(
    transactions: Sequence[Transaction],
) -> dict[int | None, SpendingStats]:
    """Return :class:`SpendingStats` per ``category_id``.

    Uncategorized transactions are grouped under the ``None`` key. Groups
    appear in first-encounter order.
    """

    groups: dict[int | None, list[Transaction]] = {}
    for t in transactions:
        groups.setdefault(t.category_id, []).append(t)
    return {key: calculate_spending_stats(group) for key, group in groups.items()}


def calculate_daily_average(
    transactions: Sequence[Transaction], start: datetime, end: datetime
) -> float:
    """Average spend per day over ``[start, end]``.

    The period length is the elapsed days rounded up, and never less than one.
    """

    if not transactions:
        return 0.0

    total = math.fsum(_magnitudes(transactions))
    days = math.ceil((end - start).total_seconds() / _SECONDS_PER_DAY)
    return total / max(days, 1)


def calculate_monthly_average(
    transactions: Sequence[Transaction], start: datetime, end: datetime
) -> float:
    """Average spend per calendar month over ``[start, end]``.

    Months are counted inclusively: Jan 31 to Feb 1 spans two months.
    """

    if not transactions:
        return 0.0

    total = math.fsum(_magnitudes(transactions))
    months = (end.year - start.year) * 12 + (end.month - start.month) + 1
    return total / max(months, 1)


def calculate_standard_deviation(transactions: Sequence[Transaction]) -> float:
    """Population standard deviation of magnitudes (divides by ``n``)."""

    if len(transactions) < 2:
        return 0.0

    amounts = _magnitudes(transactions)
    mean = math.fsum(amounts) / len(amounts)
    variance = math.fsum((a - mean) ** 2 for a in amounts) / len(amounts)
    return math.sqrt(variance)


def find_outliers(
    transactions: Sequence[Transaction], threshold_multiplier: float = 1.5
) -> list[Transaction]:
    """Return unusually large transactions using the IQR rule.

    Q1 and Q3 are read directly at positions ``floor(0.25 * n)`` and
    ``floor(0.75 * n)`` of the magnitude-sorted set (no interpolation). A
    transaction is an outlier when its magnitude exceeds
    ``Q3 + threshold_multiplier * IQR``. Only the high side is reported; small
    spends are never flagged. Fewer than four transactions yield ``[]``.

    Outliers are returned in input order.
    """

    if len(transactions) < _MIN_OUTLIER_SAMPLE:
        return []

    amounts = sorted(_magnitudes(transactions))
    n = len(amounts)
    q1 = amounts[math.floor(n * 0.25)]
    q3 = amounts[math.floor(n * 0.75)]
    upper_bound = q3 + threshold_multiplier * (q3 - q1)

    return [t for t in transactions if t.magnitude > upper_bound]


__all__ = [
    "calculate_spending_stats",
    "calculate_stats_by_category",
    "calculate_daily_average",
    "calculate_monthly_average",
    "calculate_standard_deviation",
    "find_outliers",
]
