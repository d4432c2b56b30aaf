"""CSV import: tolerant parsing of raw rows into validated transactions.

The parser never aborts a batch. Each row is mapped, validated and routed to
either ``ParseResult.valid`` or ``ParseResult.invalid`` independently of its
neighbours, so the caller always gets a complete account of every row:

1. map the row through a :class:`~spending_analysis.models.ColumnMapping`
   (rows too short for the mapping are rejected);
2. parse the date (ISO 8601 and a few textual layouts, then strict
   ``DD/MM/YYYY``);
3. require a non-blank description;
4. parse the amount as a plain signed decimal number (no currency symbols or
   thousands separators).

Reading the file itself is limited to :func:`load_csv_table`, which splits CSV
text into a header row and data rows using the stdlib :mod:`csv` module.
"""

from __future__ import annotations

import csv
import math
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from io import StringIO

from .logging_setup import get_logger
from .models import (
    ColumnMapping,
    InvalidRow,
    MappedRow,
    ParseResult,
    ValidatedTransaction,
    ValidationResult,
)

_logger = get_logger("spending_analysis.csv_import")

ERR_UNMAPPABLE = "Could not map columns (row too short)"
ERR_DATE = "Invalid date format"
ERR_DESCRIPTION = "Description cannot be empty"
ERR_AMOUNT = "Invalid amount format"

# Non-ISO layouts accepted by the general date parse, tried in order.
_TEXTUAL_DATE_FORMATS: tuple[str, ...] = (
    "%Y/%m/%d",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d, %Y",
    "%B %d, %Y",
)

_DDMMYYYY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

_AMOUNT_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")


# ---------------------------------------------------------------------------
# Header / table helpers
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CsvTable:
    """CSV content split into trimmed headers and raw data rows."""

    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]


def detect_column_headers(first_row: Sequence[str]) -> list[str]:
    """Return the first row's cells, trimmed, for use as column labels."""

    return [header.strip() for header in first_row]


def load_csv_table(csv_text: str) -> CsvTable:
    """Split CSV text into headers and data rows.

    Blank lines are skipped. Raises ``ValueError`` when no row remains.
    """

    with StringIO(csv_text) as f:
        records = [row for row in csv.reader(f) if any(cell.strip() for cell in row)]
    if not records:
        raise ValueError("CSV file is empty")
    first, *rest = records
    return CsvTable(
        headers=tuple(detect_column_headers(first)),
        rows=tuple(tuple(row) for row in rest),
    )


# ---------------------------------------------------------------------------
# Field parsing
# ---------------------------------------------------------------------------


def _parse_general_date(text: str) -> datetime | None:
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        dt = None
    if dt is None:
        for fmt in _TEXTUAL_DATE_FORMATS:
            try:
                dt = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if dt is not None and dt.tzinfo is not None:
        # Offsets are folded into naive UTC so every parsed date compares.
        dt = dt.astimezone(UTC).replace(tzinfo=None)
    return dt


def _parse_day_month_year(text: str) -> datetime | None:
    match = _DDMMYYYY_RE.match(text)
    if not match:
        return None
    day, month, year = (int(g) for g in match.groups())
    try:
        return datetime(year, month, day)
    except ValueError:
        return None


_DATE_PARSERS: tuple[Callable[[str], datetime | None], ...] = (
    _parse_general_date,
    _parse_day_month_year,
)


def parse_date(date_string: str) -> datetime | None:
    """Parse a date using each known layout in turn; ``None`` when none match.

    Slash-separated numeric dates are always read as ``DD/MM/YYYY``.
    """

    text = date_string.strip()
    if not text:
        return None
    for parser in _DATE_PARSERS:
        parsed = parser(text)
        if parsed is not None:
            return parsed
    return None


def parse_amount(amount_string: str) -> float | None:
    """Parse a signed decimal amount such as ``-12.50``; ``None`` when malformed."""

    text = amount_string.strip()
    if not _AMOUNT_RE.match(text):
        return None
    value = float(text)
    return value if math.isfinite(value) else None


# ---------------------------------------------------------------------------
# Row pipeline
# ---------------------------------------------------------------------------


def map_columns_to_transaction(row: Sequence[str], mapping: ColumnMapping) -> MappedRow | None:
    """Pull the mapped cells out of ``row``; ``None`` when the row is too short."""

    if len(row) <= mapping.max_index:
        return None
    return MappedRow(
        date=row[mapping.date_column],
        description=row[mapping.description_column],
        amount=row[mapping.amount_column],
    )


def validate_transaction_row(mapped: MappedRow) -> ValidationResult:
    """Validate a mapped row; checks run date, description, amount."""

    date = parse_date(mapped.date)
    if date is None:
        return ValidationResult(success=False, error=ERR_DATE)

    description = mapped.description.strip()
    if not description:
        return ValidationResult(success=False, error=ERR_DESCRIPTION)

    amount = parse_amount(mapped.amount)
    if amount is None:
        return ValidationResult(success=False, error=ERR_AMOUNT)

    return ValidationResult(
        success=True,
        data=ValidatedTransaction(date=date, description=description, amount=amount),
    )


def parse_csv_to_transactions(
    rows: Iterable[Sequence[str]], mapping: ColumnMapping
) -> ParseResult:
    """Parse data rows into valid transactions and rejected rows.

    ``InvalidRow.row_index`` is the 0-based position of the row in ``rows``.
    """

    valid: list[ValidatedTransaction] = []
    invalid: list[InvalidRow] = []

    for index, row in enumerate(rows):
        mapped = map_columns_to_transaction(row, mapping)
        if mapped is None:
            result = ValidationResult(success=False, error=ERR_UNMAPPABLE)
        else:
            result = validate_transaction_row(mapped)

        if result.success and result.data is not None:
            valid.append(result.data)
            continue

        error = result.error or "Validation failed"
        _logger.debug("row %d rejected: %s", index, error)
        invalid.append(InvalidRow(row_index=index, row=tuple(row), error=error))

    _logger.debug(
        "parsed %d rows: %d valid, %d invalid", len(valid) + len(invalid), len(valid), len(invalid)
    )
    return ParseResult(valid=tuple(valid), invalid=tuple(invalid))


__all__ = [
    "ERR_UNMAPPABLE",
    "ERR_DATE",
    "ERR_DESCRIPTION",
    "ERR_AMOUNT",
    "CsvTable",
    "detect_column_headers",
    "load_csv_table",
    "parse_date",
    "parse_amount",
    "map_columns_to_transaction",
    "validate_transaction_row",
    "parse_csv_to_transactions",
]
