"""Transaction filtering, searching and sorting.

Every function here takes a sequence of :class:`~spending_analysis.models.Transaction`
and returns a new list; inputs are never mutated. Filters share the
``(transactions, ...) -> list`` shape so they can be chained with
:func:`compose_filters`, typically via ``functools.partial``::

    from functools import partial

    recent_food = compose_filters(
        txs,
        [
            partial(filter_last_n_days, days=30),
            partial(filter_by_category, category_id=food.id),
            sort_by_amount,
        ],
    )

Amount bounds always compare against the magnitude (``abs(amount)``).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta
from functools import reduce

from .models import SortOrder, Transaction, TransactionFilter

# ---------------------------------------------------------------------------
# Date filters
# ---------------------------------------------------------------------------


def filter_by_date_range(
    transactions: Sequence[Transaction], start: datetime, end: datetime
) -> list[Transaction]:
    """Keep transactions dated within ``[start, end]`` (both inclusive)."""

    return [t for t in transactions if start <= t.date <= end]


def filter_current_month(
    transactions: Sequence[Transaction], reference_date: datetime | None = None
) -> list[Transaction]:
    """Keep transactions in the same calendar month and year as ``reference_date``.

    ``reference_date`` defaults to the current local time.
    """

    ref = reference_date if reference_date is not None else datetime.now()
    return [t for t in transactions if t.date.month == ref.month and t.date.year == ref.year]


def filter_by_month(
    transactions: Sequence[Transaction], month: int, year: int
) -> list[Transaction]:
    """Keep transactions from ``month``/``year``.

    ``month`` is 0-based (January is ``0``, December is ``11``).
    """

    return [t for t in transactions if t.date.month - 1 == month and t.date.year == year]


def filter_last_n_days(
    transactions: Sequence[Transaction],
    days: int,
    reference_date: datetime | None = None,
) -> list[Transaction]:
    """Keep transactions in ``[reference_date - days, reference_date]``."""

    end = reference_date if reference_date is not None else datetime.now()
    start = end - timedelta(days=days)
    return filter_by_date_range(transactions, start, end)


# ---------------------------------------------------------------------------
# Category filters
# ---------------------------------------------------------------------------


def filter_by_category(
    transactions: Sequence[Transaction], category_id: int | None
) -> list[Transaction]:
    """Keep transactions whose category is exactly ``category_id``.

    ``None`` selects uncategorized transactions.
    """

    return [t for t in transactions if t.category_id == category_id]


def filter_by_categories(
    transactions: Sequence[Transaction], category_ids: Iterable[int | None]
) -> list[Transaction]:
    """Keep transactions whose category is one of ``category_ids``.

    An empty ``category_ids`` matches nothing.
    """

    wanted = set(category_ids)
    return [t for t in transactions if t.category_id in wanted]


def filter_uncategorized(transactions: Sequence[Transaction]) -> list[Transaction]:
    return [t for t in transactions if t.category_id is None]


def filter_categorized(transactions: Sequence[Transaction]) -> list[Transaction]:
    return [t for t in transactions if t.category_id is not None]


# ---------------------------------------------------------------------------
# Amount filters (magnitude based)
# ---------------------------------------------------------------------------


def filter_by_min_amount(
    transactions: Sequence[Transaction], min_amount: float
) -> list[Transaction]:
    return [t for t in transactions if t.magnitude >= min_amount]


def filter_by_max_amount(
    transactions: Sequence[Transaction], max_amount: float
) -> list[Transaction]:
    return [t for t in transactions if t.magnitude <= max_amount]


def filter_by_amount_range(
    transactions: Sequence[Transaction], min_amount: float, max_amount: float
) -> list[Transaction]:
    """Keep transactions with ``min_amount <= abs(amount) <= max_amount``."""

    return [t for t in transactions if min_amount <= t.magnitude <= max_amount]


# ---------------------------------------------------------------------------
# Text search
# ---------------------------------------------------------------------------


def search_by_description(
    transactions: Sequence[Transaction], search_term: str
) -> list[Transaction]:
    """Case-insensitive substring search on ``description``.

    A blank term (after trimming) means "no filter" and keeps every
    transaction.
    """

    needle = search_term.strip().casefold()
    if not needle:
        return list(transactions)
    return [t for t in transactions if needle in t.description.strip().casefold()]


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------


def _check_order(order: str) -> bool:
    if order not in ("asc", "desc"):
        raise ValueError(f"order must be 'asc' or 'desc', got {order!r}")
    return order == "desc"


def sort_by_date(
    transactions: Sequence[Transaction], order: SortOrder = "desc"
) -> list[Transaction]:
    """Return a new list sorted by date; newest first by default.

    The sort is stable: transactions with equal dates keep their input order.
    """

    return sorted(transactions, key=lambda t: t.date, reverse=_check_order(order))


def sort_by_amount(
    transactions: Sequence[Transaction], order: SortOrder = "desc"
) -> list[Transaction]:
    """Return a new list sorted by magnitude; largest first by default (stable)."""

    return sorted(transactions, key=lambda t: t.magnitude, reverse=_check_order(order))


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


def compose_filters(
    transactions: Sequence[Transaction], filters: Iterable[TransactionFilter]
) -> Sequence[Transaction]:
    """Apply ``filters`` left to right, each consuming the previous output.

    With no filters the input is returned as-is.
    """

    return reduce(lambda acc, fn: fn(acc), filters, transactions)


__all__ = [
    "filter_by_date_range",
    "filter_current_month",
    "filter_by_month",
    "filter_last_n_days",
    "filter_by_category",
    "filter_by_categories",
    "filter_uncategorized",
    "filter_categorized",
    "filter_by_min_amount",
    "filter_by_max_amount",
    "filter_by_amount_range",
    "search_by_description",
    "sort_by_date",
    "sort_by_amount",
    "compose_filters",
]
