# ruff: noqa: I001
"""CLI for the ``spending_analysis`` package.

Command handlers (``cmd_import_csv``, ``cmd_stats``, ``cmd_pareto``,
``cmd_outliers``) are plain functions returning an exit status; the Typer
commands below only translate options and delegate to them. Environment
variables are loaded from a local ``.env`` using ``python-dotenv`` before any
command runs. All computation lives in the library modules.

Typical flow::

    spending-analysis import-csv --csv-path bank.csv --output ledger.json
    spending-analysis pareto --ledger ledger.json --month 2025-01
"""

from __future__ import annotations

import csv
import math
import os
import re
import sys
from collections.abc import Sequence
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .csv_import import load_csv_table, parse_csv_to_transactions
from .filters import (
    compose_filters,
    filter_by_amount_range,
    filter_by_category,
    filter_by_date_range,
    filter_by_max_amount,
    filter_by_min_amount,
    filter_by_month,
    filter_last_n_days,
    filter_uncategorized,
    search_by_description,
    sort_by_amount,
    sort_by_date,
)
from .ledger import load_ledger, write_ledger
from .logging_setup import configure_logging, get_logger
from .models import Category, ColumnMapping, Transaction, TransactionFilter
from .pareto import (
    PARETO_CUTOFF_PERCENT,
    UNCATEGORIZED_LABEL,
    calculate_pareto_analysis,
    get_pareto_count,
)
from .statistics import (
    calculate_daily_average,
    calculate_monthly_average,
    calculate_spending_stats,
    calculate_standard_deviation,
    calculate_stats_by_category,
    find_outliers,
)

_logger = get_logger("spending_analysis.cli")

_DEFAULT_OUTLIER_THRESHOLD = 1.5
_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})$")
_DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]


# ---- Small module-level helpers used by CLI commands -------------------------


def _resolve_outlier_threshold(explicit: float | None) -> float:
    """Resolve the IQR multiplier for ``outliers``.

    Honors an explicit option first, then ``SA_OUTLIER_THRESHOLD``, then 1.5.
    Unparsable, negative or non-finite env values fall back to the default;
    zero is accepted, matching the ``--threshold`` bound.
    """

    if explicit is not None:
        return explicit
    env_val = os.getenv("SA_OUTLIER_THRESHOLD")
    try:
        value = float(env_val) if env_val else None
    except ValueError:
        value = None
    if value is not None and math.isfinite(value) and value >= 0:
        return value
    return _DEFAULT_OUTLIER_THRESHOLD


def _end_of_day(dt: datetime) -> datetime:
    # A bare date given as --end covers the whole day.
    if dt.hour == dt.minute == dt.second == dt.microsecond == 0:
        return dt.replace(hour=23, minute=59, second=59, microsecond=999999)
    return dt


def _parse_month(value: str) -> tuple[int, int]:
    """Parse ``YYYY-MM`` into ``(zero_based_month, year)``."""

    match = _MONTH_RE.match(value.strip())
    if not match or not 1 <= int(match.group(2)) <= 12:
        raise ValueError(f"month must look like YYYY-MM, got {value!r}")
    return int(match.group(2)) - 1, int(match.group(1))


def build_filters(
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    category: int | None = None,
    uncategorized: bool = False,
    search: str | None = None,
    min_amount: float | None = None,
    max_amount: float | None = None,
    last_days: int | None = None,
    month: str | None = None,
) -> list[TransactionFilter]:
    """Translate CLI filter options into a list of pipeline stages.

    Raises ``ValueError`` for contradictory or malformed options.
    """

    if category is not None and uncategorized:
        raise ValueError("--category and --uncategorized are mutually exclusive")

    stages: list[TransactionFilter] = []
    if start is not None or end is not None:
        stages.append(
            partial(
                filter_by_date_range,
                start=start or datetime.min,
                end=_end_of_day(end) if end is not None else datetime.max,
            )
        )
    if month is not None:
        m, y = _parse_month(month)
        stages.append(partial(filter_by_month, month=m, year=y))
    if last_days is not None:
        stages.append(partial(filter_last_n_days, days=last_days))
    if category is not None:
        stages.append(partial(filter_by_category, category_id=category))
    if uncategorized:
        stages.append(filter_uncategorized)
    if min_amount is not None and max_amount is not None:
        stages.append(partial(filter_by_amount_range, min_amount=min_amount, max_amount=max_amount))
    elif min_amount is not None:
        stages.append(partial(filter_by_min_amount, min_amount=min_amount))
    elif max_amount is not None:
        stages.append(partial(filter_by_max_amount, max_amount=max_amount))
    if search:
        stages.append(partial(search_by_description, search_term=search))
    return stages


def _load_filtered(
    ledger_path: str, stages: Sequence[TransactionFilter]
) -> tuple[list[Transaction], tuple[Category, ...]]:
    ledger = load_ledger(ledger_path)
    txs = list(compose_filters(ledger.transactions, stages))
    _logger.info(
        "selected %d of %d transactions from %s",
        len(txs),
        len(ledger.transactions),
        ledger_path,
    )
    return txs, ledger.categories


def _category_names(categories: Sequence[Category]) -> dict[int | None, str]:
    names: dict[int | None, str] = {c.id: c.name for c in categories}
    names[None] = UNCATEGORIZED_LABEL
    return names


def _fmt(amount: float) -> str:
    return f"{amount:,.2f}"


# ---- Command handlers ----------------------------------------------------------


def cmd_import_csv(
    csv_path: str,
    *,
    mapping: ColumnMapping,
    output: str | None = None,
    append: bool = False,
    show_headers: bool = False,
) -> int:
    """Parse a bank CSV export and optionally write the valid rows to a ledger.

    Behavior
    --------
    - Reads ``csv_path`` (UTF-8, BOM tolerated); the first non-blank row is
      the header row.
    - Rejected rows are reported on stderr as
      ``row <index>: <reason>: <cells>`` where ``<index>`` is the 0-based
      position among data rows.
    - With ``output``, valid rows become uncategorized transactions with ids
      ``1..N`` (or continuing after the existing ids when ``append`` is set)
      and the ledger is written atomically. Without it, valid rows are printed
      as ``<date>\\t<description>\\t<amount>``.

    Returns ``1`` when the file can't be read or no row is valid, else ``0``.
    """

    try:
        table = load_csv_table(Path(csv_path).read_text(encoding="utf-8-sig"))
    except (OSError, ValueError, csv.Error) as e:
        print(f"Error: failed to read CSV {csv_path}: {e}", file=sys.stderr)
        return 1

    if show_headers:
        for i, header in enumerate(table.headers):
            print(f"{i}\t{header}")

    result = parse_csv_to_transactions(table.rows, mapping)
    for bad in result.invalid:
        print(f"row {bad.row_index}: {bad.error}: {list(bad.row)}", file=sys.stderr)

    if not result.valid:
        print("Error: no valid transactions to import", file=sys.stderr)
        return 1

    if output is None:
        for v in result.valid:
            print(f"{v.date.isoformat()}\t{v.description}\t{v.amount:.2f}")
        print(f"{len(result.valid)} valid, {len(result.invalid)} rejected", file=sys.stderr)
        return 0

    existing: tuple[Transaction, ...] = ()
    categories: tuple[Category, ...] = ()
    if append and Path(output).exists():
        try:
            ledger = load_ledger(output)
        except (OSError, ValueError) as e:
            print(f"Error: failed to read ledger {output}: {e}", file=sys.stderr)
            return 1
        existing, categories = ledger.transactions, ledger.categories

    next_id = max((t.id for t in existing), default=0) + 1
    imported = [v.to_transaction(next_id + i) for i, v in enumerate(result.valid)]
    try:
        path = write_ledger(output, [*existing, *imported], categories)
    except (OSError, ValueError) as e:
        print(f"Error: failed to write ledger {output}: {e}", file=sys.stderr)
        return 1

    _logger.info("imported %d transactions into %s", len(imported), path)
    print(f"Imported {len(imported)} transactions ({len(result.invalid)} rejected) -> {path}")
    return 0


def cmd_stats(ledger_path: str, *, stages: Sequence[TransactionFilter]) -> int:
    """Print spending statistics for the selected transactions."""

    try:
        txs, categories = _load_filtered(ledger_path, stages)
    except (OSError, ValueError) as e:
        print(f"Error: failed to load ledger {ledger_path}: {e}", file=sys.stderr)
        return 1

    stats = calculate_spending_stats(txs)
    print(f"Transactions:       {stats.count}")
    print(f"Total:              {_fmt(stats.total)}")
    print(f"Average:            {_fmt(stats.average)}")
    print(f"Median:             {_fmt(stats.median)}")
    print(f"Min:                {_fmt(stats.min)}")
    print(f"Max:                {_fmt(stats.max)}")
    print(f"Std deviation:      {_fmt(calculate_standard_deviation(txs))}")
    if not txs:
        return 0

    by_date = sort_by_date(txs, "asc")
    first, last = by_date[0].date, by_date[-1].date
    print(f"Daily average:      {_fmt(calculate_daily_average(txs, first, last))}")
    print(f"Monthly average:    {_fmt(calculate_monthly_average(txs, first, last))}")

    names = _category_names(categories)
    print()
    print(f"{'Category':<24}{'Count':>7}{'Total':>14}{'Average':>12}{'Median':>12}")
    for category_id, s in calculate_stats_by_category(txs).items():
        name = names.get(category_id, UNCATEGORIZED_LABEL)
        print(
            f"{name:<24}{s.count:>7}{_fmt(s.total):>14}{_fmt(s.average):>12}{_fmt(s.median):>12}"
        )
    return 0


def cmd_pareto(ledger_path: str, *, stages: Sequence[TransactionFilter]) -> int:
    """Print the category ranking; Pareto-group rows are marked with ``*``."""

    try:
        txs, categories = _load_filtered(ledger_path, stages)
    except (OSError, ValueError) as e:
        print(f"Error: failed to load ledger {ledger_path}: {e}", file=sys.stderr)
        return 1

    analysis = calculate_pareto_analysis(txs, categories)
    if not analysis.categories:
        print("No transactions selected.")
        return 0

    pareto_ids = {c.category_id for c in analysis.pareto_categories}
    print(f"{'':2}{'Category':<24}{'Count':>7}{'Total':>14}{'Share':>9}{'Cumulative':>12}")
    for c in analysis.categories:
        mark = "*" if c.category_id in pareto_ids else ""
        print(
            f"{mark:<2}{c.category_name:<24}{c.transaction_count:>7}"
            f"{_fmt(c.total_amount):>14}{c.percentage:>8.1f}%{c.cumulative_percentage:>11.1f}%"
        )
    print()
    print(f"Total spending:     {_fmt(analysis.total_spending)}")
    print(f"Pareto threshold:   {_fmt(analysis.pareto_threshold)}")
    print(
        f"{get_pareto_count(analysis)} of {len(analysis.categories)} categories account for "
        f"{PARETO_CUTOFF_PERCENT:.0f}% of spending"
    )
    return 0


def cmd_outliers(
    ledger_path: str, *, stages: Sequence[TransactionFilter], threshold: float | None = None
) -> int:
    """Print unusually large transactions, largest first."""

    try:
        txs, categories = _load_filtered(ledger_path, stages)
    except (OSError, ValueError) as e:
        print(f"Error: failed to load ledger {ledger_path}: {e}", file=sys.stderr)
        return 1

    multiplier = _resolve_outlier_threshold(threshold)
    outliers = find_outliers(txs, multiplier)
    names = _category_names(categories)
    for t in sort_by_amount(outliers):
        name = names.get(t.category_id, UNCATEGORIZED_LABEL)
        print(f"{t.id}\t{t.date.date().isoformat()}\t{_fmt(t.amount)}\t{name}\t{t.description}")
    print(f"{len(outliers)} outlier(s) among {len(txs)} transactions (k={multiplier:g})")
    return 0


# ---- Typer app -------------------------------------------------------------------

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Spending analytics: CSV import, statistics, outliers and 80/20 analysis.",
)

# Module-level option objects (ruff B008: no calls in parameter defaults).
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,
    "--csv-path",
    help="Path to a bank CSV export (first row is the header).",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports a readable error instead
)
LEDGER_OPTION: OptionInfo = typer.Option(
    ...,
    "--ledger",
    help="Path to a ledger JSON file (as written by import-csv).",
    dir_okay=False,
    file_okay=True,
    exists=False,
)
START_OPTION: OptionInfo = typer.Option(
    ..., "--start", formats=_DATE_FORMATS, help="Keep transactions on/after this date."
)
END_OPTION: OptionInfo = typer.Option(
    ...,
    "--end",
    formats=_DATE_FORMATS,
    help="Keep transactions on/before this date (a bare date covers the whole day).",
)
CATEGORY_OPTION: OptionInfo = typer.Option(..., "--category", help="Category id to keep.")
UNCATEGORIZED_OPTION: OptionInfo = typer.Option(
    ..., "--uncategorized", help="Keep only uncategorized transactions."
)
SEARCH_OPTION: OptionInfo = typer.Option(
    ..., "--search", help="Case-insensitive description substring."
)
MIN_AMOUNT_OPTION: OptionInfo = typer.Option(
    ..., "--min-amount", help="Minimum absolute amount (inclusive)."
)
MAX_AMOUNT_OPTION: OptionInfo = typer.Option(
    ..., "--max-amount", help="Maximum absolute amount (inclusive)."
)
LAST_DAYS_OPTION: OptionInfo = typer.Option(
    ..., "--last-days", min=0, help="Keep transactions from the last N days."
)
MONTH_OPTION: OptionInfo = typer.Option(..., "--month", help="Keep one month, as YYYY-MM.")


def _exit(rc: int) -> None:
    if rc != 0:
        raise typer.Exit(code=rc)


def _stages_or_exit(**options) -> list[TransactionFilter]:
    try:
        return build_filters(**options)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise typer.Exit(code=2) from e


@app.command("import-csv")
def import_csv_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    date_column: int = typer.Option(0, min=0, help="0-based index of the date column."),
    description_column: int = typer.Option(
        1, min=0, help="0-based index of the description column."
    ),
    amount_column: int = typer.Option(2, min=0, help="0-based index of the amount column."),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write valid rows to this ledger JSON file."
    ),
    append: bool = typer.Option(False, help="Append to an existing --output ledger."),
    show_headers: bool = typer.Option(False, help="Print detected column headers first."),
) -> None:
    mapping = ColumnMapping(
        date_column=date_column,
        description_column=description_column,
        amount_column=amount_column,
    )
    _exit(
        cmd_import_csv(
            str(csv_path),
            mapping=mapping,
            output=str(output) if output is not None else None,
            append=append,
            show_headers=show_headers,
        )
    )


@app.command("stats")
def stats_cmd(
    ledger: Annotated[Path, LEDGER_OPTION],
    *,
    start: Annotated[datetime | None, START_OPTION] = None,
    end: Annotated[datetime | None, END_OPTION] = None,
    category: Annotated[int | None, CATEGORY_OPTION] = None,
    uncategorized: Annotated[bool, UNCATEGORIZED_OPTION] = False,
    search: Annotated[str | None, SEARCH_OPTION] = None,
    min_amount: Annotated[float | None, MIN_AMOUNT_OPTION] = None,
    max_amount: Annotated[float | None, MAX_AMOUNT_OPTION] = None,
    last_days: Annotated[int | None, LAST_DAYS_OPTION] = None,
    month: Annotated[str | None, MONTH_OPTION] = None,
) -> None:
    stages = _stages_or_exit(
        start=start,
        end=end,
        category=category,
        uncategorized=uncategorized,
        search=search,
        min_amount=min_amount,
        max_amount=max_amount,
        last_days=last_days,
        month=month,
    )
    _exit(cmd_stats(str(ledger), stages=stages))


@app.command("pareto")
def pareto_cmd(
    ledger: Annotated[Path, LEDGER_OPTION],
    *,
    start: Annotated[datetime | None, START_OPTION] = None,
    end: Annotated[datetime | None, END_OPTION] = None,
    category: Annotated[int | None, CATEGORY_OPTION] = None,
    uncategorized: Annotated[bool, UNCATEGORIZED_OPTION] = False,
    search: Annotated[str | None, SEARCH_OPTION] = None,
    min_amount: Annotated[float | None, MIN_AMOUNT_OPTION] = None,
    max_amount: Annotated[float | None, MAX_AMOUNT_OPTION] = None,
    last_days: Annotated[int | None, LAST_DAYS_OPTION] = None,
    month: Annotated[str | None, MONTH_OPTION] = None,
) -> None:
    stages = _stages_or_exit(
        start=start,
        end=end,
        category=category,
        uncategorized=uncategorized,
        search=search,
        min_amount=min_amount,
        max_amount=max_amount,
        last_days=last_days,
        month=month,
    )
    _exit(cmd_pareto(str(ledger), stages=stages))


@app.command("outliers")
def outliers_cmd(
    ledger: Annotated[Path, LEDGER_OPTION],
    *,
    threshold: float | None = typer.Option(
        None,
        "--threshold",
        min=0.0,
        help="IQR multiplier (default: SA_OUTLIER_THRESHOLD or 1.5).",
    ),
    start: Annotated[datetime | None, START_OPTION] = None,
    end: Annotated[datetime | None, END_OPTION] = None,
    category: Annotated[int | None, CATEGORY_OPTION] = None,
    uncategorized: Annotated[bool, UNCATEGORIZED_OPTION] = False,
    search: Annotated[str | None, SEARCH_OPTION] = None,
    min_amount: Annotated[float | None, MIN_AMOUNT_OPTION] = None,
    max_amount: Annotated[float | None, MAX_AMOUNT_OPTION] = None,
    last_days: Annotated[int | None, LAST_DAYS_OPTION] = None,
    month: Annotated[str | None, MONTH_OPTION] = None,
) -> None:
    stages = _stages_or_exit(
        start=start,
        end=end,
        category=category,
        uncategorized=uncategorized,
        search=search,
        min_amount=min_amount,
        max_amount=max_amount,
        last_days=last_days,
        month=month,
    )
    _exit(cmd_outliers(str(ledger), stages=stages, threshold=threshold))


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    main()
