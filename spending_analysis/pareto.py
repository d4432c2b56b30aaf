"""Pareto (80/20) analysis of spending by category.

Ranks categories by total spend and identifies the leading group that accounts
for 80% of it.

Prefix selection
----------------
Entries whose cumulative share is at most 80% are taken first. That slice may
be empty (the top category alone exceeds 80%) or may stop just short of 80%
(the line is crossed inside the next entry), so:

- an empty slice becomes the top-ranked entry;
- otherwise, when entries remain, the next one is appended.

The returned group therefore always reaches or straddles the 80% line. With
evenly distributed spend this includes more categories than a strict cutoff
would; that is intended.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .models import Category, CategorySpending, ParetoAnalysisResult, Transaction

PARETO_CUTOFF_PERCENT = 80.0
UNCATEGORIZED_LABEL = "Uncategorized"


@dataclass(slots=True)
class _Bucket:
    total: float = 0.0
    count: int = 0


def _group_by_category(transactions: Iterable[Transaction]) -> dict[int | None, _Bucket]:
    buckets: dict[int | None, _Bucket] = {}
    for t in transactions:
        bucket = buckets.setdefault(t.category_id, _Bucket())
        bucket.total += t.magnitude
        bucket.count += 1
    return buckets


def _select_pareto_prefix(ranked: Sequence[CategorySpending]) -> tuple[CategorySpending, ...]:
    n = sum(1 for c in ranked if c.cumulative_percentage <= PARETO_CUTOFF_PERCENT)
    if n == 0 and ranked:
        n = 1
    elif n < len(ranked):
        n += 1
    return tuple(ranked[:n])


def calculate_pareto_analysis(
    transactions: Sequence[Transaction], categories: Iterable[Category]
) -> ParetoAnalysisResult:
    """Rank spend by category and find the group covering 80% of the total.

    Parameters
    ----------
    transactions:
        Transactions to analyze. Magnitudes are used.
    categories:
        Known categories, used for display names. Uncategorized transactions,
        and ids missing from this collection, are labelled
        ``UNCATEGORIZED_LABEL``.

    Returns
    -------
    ParetoAnalysisResult
        Categories ranked by total (descending; ties keep first-encounter
        order), the Pareto group, the grand total, and ``0.8 * total``.
    """

    if not transactions:
        return ParetoAnalysisResult()

    names = {c.id: c.name for c in categories}
    buckets = _group_by_category(transactions)
    total_spending = sum(b.total for b in buckets.values())

    def share(amount: float) -> float:
        return amount * 100 / total_spending if total_spending > 0 else 0.0

    # sorted() is stable, so equal totals keep first-encounter order.
    ranked_buckets = sorted(buckets.items(), key=lambda kv: kv[1].total, reverse=True)

    ranked: list[CategorySpending] = []
    running = 0.0
    for category_id, bucket in ranked_buckets:
        running += bucket.total
        ranked.append(
            CategorySpending(
                category_id=category_id,
                category_name=names.get(category_id, UNCATEGORIZED_LABEL),
                total_amount=bucket.total,
                transaction_count=bucket.count,
                percentage=share(bucket.total),
                cumulative_percentage=share(running),
            )
        )

    return ParetoAnalysisResult(
        categories=tuple(ranked),
        pareto_categories=_select_pareto_prefix(ranked),
        total_spending=total_spending,
        pareto_threshold=total_spending * PARETO_CUTOFF_PERCENT / 100,
    )


def get_pareto_count(analysis: ParetoAnalysisResult) -> int:
    """Number of categories in the Pareto group."""

    return len(analysis.pareto_categories)


def is_pareto_category(category_id: int | None, analysis: ParetoAnalysisResult) -> bool:
    """Whether ``category_id`` (``None`` for uncategorized) is in the Pareto group."""

    return any(c.category_id == category_id for c in analysis.pareto_categories)


__all__ = [
    "PARETO_CUTOFF_PERCENT",
    "UNCATEGORIZED_LABEL",
    "calculate_pareto_analysis",
    "get_pareto_count",
    "is_pareto_category",
]
