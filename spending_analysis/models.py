"""Data models and type aliases for ``spending_analysis``.

Core records (transactions and the derived analytics views) are frozen
``dataclass`` instances: the analytics functions never mutate them, so they can
be shared freely between callers. Inputs supplied from outside the core
(categories, column mappings) are pydantic models so structural mistakes are
rejected at construction time rather than deep inside a computation.

Amounts are plain floats. Their sign is carried through untouched; every
aggregate in this package works on the magnitude (``abs(amount)``).
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Core records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Transaction:
    """A single bank transaction as held by the external store.

    ``category_id`` is ``None`` for uncategorized transactions. A real category
    may legitimately use id ``0``; ``None`` is the only "no category" marker.
    """

    id: int
    date: datetime
    description: str
    amount: float
    category_id: int | None = None

    @property
    def magnitude(self) -> float:
        return abs(self.amount)


_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class Category(BaseModel):
    """A spending category. The analytics only read ``id`` and ``name``."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    id: int
    name: str = Field(min_length=1)
    color: str | None = None

    @field_validator("color")
    @classmethod
    def _color_is_hex(cls, v: str | None) -> str | None:
        if v is None or v == "":
            return None
        if not _HEX_COLOR_RE.match(v):
            raise ValueError("color must be a #RGB or #RRGGBB hex string")
        return v


# Filter stages consume and produce transaction lists.
TransactionFilter: TypeAlias = Callable[[Sequence[Transaction]], Sequence[Transaction]]

SortOrder: TypeAlias = Literal["asc", "desc"]


# ---------------------------------------------------------------------------
# Derived analytics views
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SpendingStats:
    """Summary statistics over transaction magnitudes."""

    total: float = 0.0
    average: float = 0.0
    median: float = 0.0
    min: float = 0.0
    max: float = 0.0
    count: int = 0


@dataclass(frozen=True, slots=True)
class CategorySpending:
    """Spend attributed to one category, positioned within a ranking.

    ``percentage`` is this category's share of total spend (0-100) and
    ``cumulative_percentage`` the running share up to and including this entry
    in ranking order.
    """

    category_id: int | None
    category_name: str
    total_amount: float
    transaction_count: int
    percentage: float
    cumulative_percentage: float


@dataclass(frozen=True, slots=True)
class ParetoAnalysisResult:
    """Outcome of an 80/20 concentration analysis.

    Attributes
    ----------
    categories:
        Every category with spend, ranked by ``total_amount`` descending.
    pareto_categories:
        Leading slice of ``categories`` that reaches (or straddles) 80% of
        total spend. Never empty when ``categories`` is non-empty.
    total_spending:
        Sum of all transaction magnitudes.
    pareto_threshold:
        ``0.8 * total_spending``, reported for reference.
    """

    categories: tuple[CategorySpending, ...] = ()
    pareto_categories: tuple[CategorySpending, ...] = ()
    total_spending: float = 0.0
    pareto_threshold: float = 0.0


# ---------------------------------------------------------------------------
# CSV ingestion
# ---------------------------------------------------------------------------


class ColumnMapping(BaseModel):
    """Zero-based column positions of the fields in a raw CSV row."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    date_column: int = Field(ge=0)
    description_column: int = Field(ge=0)
    amount_column: int = Field(ge=0)

    @property
    def max_index(self) -> int:
        return max(self.date_column, self.description_column, self.amount_column)


@dataclass(frozen=True, slots=True)
class MappedRow:
    """Raw, unvalidated field strings pulled from a row by a ``ColumnMapping``."""

    date: str
    description: str
    amount: str


@dataclass(frozen=True, slots=True)
class ValidatedTransaction:
    """A CSV row that passed validation, ready to be persisted by the caller."""

    date: datetime
    description: str
    amount: float

    def to_transaction(self, id: int, *, category_id: int | None = None) -> Transaction:
        """Build a :class:`Transaction`; new imports are uncategorized by default."""

        return Transaction(
            id=id,
            date=self.date,
            description=self.description,
            amount=self.amount,
            category_id=category_id,
        )


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of validating a single mapped row.

    Exactly one of ``data`` (on success) or ``error`` (on failure) is set.
    """

    success: bool
    data: ValidatedTransaction | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class InvalidRow:
    """A rejected row: its 0-based batch position, raw cells and the reason."""

    row_index: int
    row: tuple[str, ...]
    error: str


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Every input row, partitioned by outcome. Input order is kept in both."""

    valid: tuple[ValidatedTransaction, ...] = ()
    invalid: tuple[InvalidRow, ...] = ()

    @property
    def total_rows(self) -> int:
        return len(self.valid) + len(self.invalid)


__all__ = [
    "Transaction",
    "Category",
    "TransactionFilter",
    "SortOrder",
    "SpendingStats",
    "CategorySpending",
    "ParetoAnalysisResult",
    "ColumnMapping",
    "MappedRow",
    "ValidatedTransaction",
    "ValidationResult",
    "InvalidRow",
    "ParseResult",
]
