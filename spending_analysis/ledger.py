"""JSON ledger files shared between CLI commands.

A ledger is a plain JSON document holding transactions and categories::

    {
      "transactions": [
        {"id": 1, "date": "2025-01-15T00:00:00", "description": "Groceries",
         "amount": -45.5, "category_id": 2}
      ],
      "categories": [{"id": 2, "name": "Food", "color": "#4CAF50"}]
    }

``import-csv`` writes one; the analytics commands read it. The on-disk shape
is validated with pydantic and converted into the core records from
:mod:`spending_analysis.models`.

Atomicity: writes target ``<path>.tmp`` first and then ``os.replace`` into
place.
"""

from __future__ import annotations

import contextlib
import os
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from os import PathLike
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .logging_setup import get_logger
from .models import Category, Transaction

_logger = get_logger("spending_analysis.ledger")


class LedgerTransaction(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    id: int
    date: datetime
    description: str = Field(min_length=1)
    amount: float = Field(allow_inf_nan=False)
    category_id: int | None = None

    @field_validator("date")
    @classmethod
    def _naive_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is not None:
            return v.astimezone(UTC).replace(tzinfo=None)
        return v


class LedgerFile(BaseModel):
    """Top-level schema for a ledger JSON file."""

    model_config = ConfigDict(extra="forbid")

    transactions: list[LedgerTransaction] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_ids(self) -> LedgerFile:
        tx_ids = [t.id for t in self.transactions]
        if len(tx_ids) != len(set(tx_ids)):
            raise ValueError("transaction ids must be unique")
        cat_ids = [c.id for c in self.categories]
        if len(cat_ids) != len(set(cat_ids)):
            raise ValueError("category ids must be unique")
        names = [c.name.casefold() for c in self.categories]
        if len(names) != len(set(names)):
            raise ValueError("category names must be unique")
        return self


@dataclass(frozen=True, slots=True)
class Ledger:
    """Core records loaded from a ledger file."""

    transactions: tuple[Transaction, ...]
    categories: tuple[Category, ...]


def load_ledger(path: str | PathLike[str]) -> Ledger:
    """Read and validate a ledger file.

    Raises ``OSError`` when unreadable and ``pydantic.ValidationError`` (a
    ``ValueError``) when the content does not match the schema.
    """

    p = Path(path)
    doc = LedgerFile.model_validate_json(p.read_text(encoding="utf-8"))
    _logger.debug(
        "loaded ledger %s: %d transactions, %d categories",
        p,
        len(doc.transactions),
        len(doc.categories),
    )
    return Ledger(
        transactions=tuple(
            Transaction(
                id=t.id,
                date=t.date,
                description=t.description,
                amount=t.amount,
                category_id=t.category_id,
            )
            for t in doc.transactions
        ),
        categories=tuple(doc.categories),
    )


def write_ledger(
    path: str | PathLike[str],
    transactions: Iterable[Transaction],
    categories: Iterable[Category] = (),
) -> Path:
    """Validate and atomically write a ledger file; returns the final path."""

    doc = LedgerFile(
        transactions=[
            LedgerTransaction(
                id=t.id,
                date=t.date,
                description=t.description,
                amount=t.amount,
                category_id=t.category_id,
            )
            for t in transactions
        ],
        categories=list(categories),
    )
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_name(p.name + ".tmp")
    try:
        tmp.write_text(doc.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp, p)
    except Exception:
        with contextlib.suppress(FileNotFoundError):
            tmp.unlink()
        raise
    _logger.debug("wrote ledger %s (%d transactions)", p, len(doc.transactions))
    return p


__all__ = ["Ledger", "LedgerFile", "LedgerTransaction", "load_ledger", "write_ledger"]
