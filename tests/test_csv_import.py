from __future__ import annotations

import textwrap
from datetime import datetime

import pytest
from pydantic import ValidationError

from spending_analysis.csv_import import (
    ERR_AMOUNT,
    ERR_DATE,
    ERR_DESCRIPTION,
    ERR_UNMAPPABLE,
    detect_column_headers,
    load_csv_table,
    map_columns_to_transaction,
    parse_amount,
    parse_csv_to_transactions,
    parse_date,
    validate_transaction_row,
)
from spending_analysis.models import ColumnMapping, MappedRow, Transaction

MAPPING = ColumnMapping(date_column=0, description_column=1, amount_column=2)


def _mapped(date="2025-01-15", description="Groceries", amount="45.50") -> MappedRow:
    return MappedRow(date=date, description=description, amount=amount)


# ---- Headers / table --------------------------------------------------------------


def test_detect_column_headers_trims_each_cell():
    assert detect_column_headers([" Date", "Description ", " Amount "]) == [
        "Date",
        "Description",
        "Amount",
    ]


def test_detect_column_headers_empty():
    assert detect_column_headers([]) == []


def test_load_csv_table_splits_header_and_rows():
    text = textwrap.dedent(
        """\
        Date, Description ,Amount
        2025-01-15,"Groceries, weekly",-45.50

        15/01/2025,Transport,12.00
        """
    )
    table = load_csv_table(text)
    assert table.headers == ("Date", "Description", "Amount")
    assert table.rows == (
        ("2025-01-15", "Groceries, weekly", "-45.50"),
        ("15/01/2025", "Transport", "12.00"),
    )


@pytest.mark.parametrize("text", ["", "\n\n", " , \n"])
def test_load_csv_table_rejects_empty_input(text):
    with pytest.raises(ValueError, match="empty"):
        load_csv_table(text)


# ---- Column mapping -----------------------------------------------------------------


def test_map_columns_in_any_order_with_extra_columns():
    mapping = ColumnMapping(date_column=2, description_column=0, amount_column=3)
    row = ["Rent", "ignored", "2025-02-01", "-950", "extra"]
    assert map_columns_to_transaction(row, mapping) == MappedRow(
        date="2025-02-01", description="Rent", amount="-950"
    )


@pytest.mark.parametrize(
    "mapping",
    [
        ColumnMapping(date_column=3, description_column=1, amount_column=2),
        ColumnMapping(date_column=0, description_column=1, amount_column=5),
    ],
)
def test_map_columns_returns_none_for_short_rows(mapping):
    assert map_columns_to_transaction(["2025-01-15", "Groceries", "45.50"], mapping) is None


def test_column_mapping_rejects_negative_indices():
    with pytest.raises(ValidationError):
        ColumnMapping(date_column=-1, description_column=1, amount_column=2)


# ---- Dates ----------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2025-01-15", datetime(2025, 1, 15)),
        ("2025-01-15T14:30:00", datetime(2025, 1, 15, 14, 30)),
        ("2025-01-15 14:30", datetime(2025, 1, 15, 14, 30)),
        ("2025-01-15T23:30:00-02:00", datetime(2025, 1, 16, 1, 30)),
        ("2025-01-15T10:00:00Z", datetime(2025, 1, 15, 10, 0)),
        ("2025/01/15", datetime(2025, 1, 15)),
        ("15 Jan 2025", datetime(2025, 1, 15)),
        ("Jan 15, 2025", datetime(2025, 1, 15)),
        ("January 15, 2025", datetime(2025, 1, 15)),
        ("15/01/2025", datetime(2025, 1, 15)),
        ("5/1/2025", datetime(2025, 1, 5)),
        ("  15/01/2025 ", datetime(2025, 1, 15)),
    ],
)
def test_parse_date_accepted_layouts(text, expected):
    assert parse_date(text) == expected


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "invalid-date",
        "31/02/2025",
        "15/13/2025",
        "15/01/25",
        "15-01-2025x",
        "2025-13-01",
    ],
)
def test_parse_date_rejects(text):
    assert parse_date(text) is None


def test_slash_dates_are_day_first():
    assert parse_date("01/02/2025") == datetime(2025, 2, 1)


# ---- Amounts --------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("45.50", 45.5),
        ("-20.00", -20.0),
        ("+7", 7.0),
        (" 12 ", 12.0),
        (".5", 0.5),
        ("3.", 3.0),
        ("1e3", 1000.0),
    ],
)
def test_parse_amount_accepts_plain_numbers(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize(
    "text", ["", "abc", "$12.00", "12.00 EUR", "1,234.56", "--5", "nan", "inf", "1e999"]
)
def test_parse_amount_rejects(text):
    assert parse_amount(text) is None


# ---- Row validation -------------------------------------------------------------------


def test_validate_correct_row():
    result = validate_transaction_row(_mapped())
    assert result.success
    assert result.error is None
    assert result.data is not None
    assert result.data.date == datetime(2025, 1, 15)
    assert result.data.description == "Groceries"
    assert result.data.amount == 45.5


def test_validate_trims_description():
    result = validate_transaction_row(_mapped(description="  Groceries  "))
    assert result.data is not None
    assert result.data.description == "Groceries"


def test_validate_negative_amount():
    result = validate_transaction_row(_mapped(amount="-20.00"))
    assert result.data is not None and result.data.amount == -20.0


@pytest.mark.parametrize(
    ("kwargs", "error"),
    [
        ({"date": "invalid-date"}, ERR_DATE),
        ({"description": ""}, ERR_DESCRIPTION),
        ({"description": "   "}, ERR_DESCRIPTION),
        ({"amount": "abc"}, ERR_AMOUNT),
        ({"amount": ""}, ERR_AMOUNT),
    ],
)
def test_validate_rejections(kwargs, error):
    result = validate_transaction_row(_mapped(**kwargs))
    assert not result.success
    assert result.data is None
    assert result.error == error


def test_validate_checks_date_before_description_and_amount():
    result = validate_transaction_row(_mapped(date="nope", description="", amount="x"))
    assert result.error == ERR_DATE


# ---- Batch parsing --------------------------------------------------------------------


def test_parse_two_valid_rows():
    rows = [["2025-01-15", "Groceries", "45.50"], ["2025-01-16", "Transport", "12.00"]]
    result = parse_csv_to_transactions(rows, MAPPING)

    assert result.invalid == ()
    assert [v.amount for v in result.valid] == [45.5, 12.0]
    assert [v.description for v in result.valid] == ["Groceries", "Transport"]


def test_parse_mixed_rows_reports_every_row():
    rows = [
        ["2025-01-15", "Groceries", "45.50"],
        ["invalid-date", "Transport", "12.00"],
        ["2025-01-17", "", "100.00"],
        ["2025-01-18"],
        ["2025-01-19", "Valid", "50.00"],
        ["2025-01-20", "Coffee", "3,50"],
    ]
    result = parse_csv_to_transactions(rows, MAPPING)

    assert result.total_rows == len(rows)
    assert [v.description for v in result.valid] == ["Groceries", "Valid"]
    assert [(r.row_index, r.error) for r in result.invalid] == [
        (1, ERR_DATE),
        (2, ERR_DESCRIPTION),
        (3, ERR_UNMAPPABLE),
        (5, ERR_AMOUNT),
    ]
    assert result.invalid[2].row == ("2025-01-18",)


def test_parse_keeps_original_cells_untrimmed():
    rows = [[" bad ", " Groceries ", " 1 "]]
    result = parse_csv_to_transactions(rows, MAPPING)
    assert result.invalid[0].row == (" bad ", " Groceries ", " 1 ")


def test_parse_empty_batch():
    result = parse_csv_to_transactions([], MAPPING)
    assert result.valid == () and result.invalid == ()


def test_parse_accepts_any_iterable_of_rows():
    rows = (r for r in [["2025-01-15", "A", "1"], ["x", "B", "2"]])
    result = parse_csv_to_transactions(rows, MAPPING)
    assert result.total_rows == 2
    assert result.invalid[0].row_index == 1


def test_validated_row_converts_to_uncategorized_transaction():
    result = parse_csv_to_transactions([["2025-01-15", "Groceries", "-45.50"]], MAPPING)
    tx = result.valid[0].to_transaction(7)
    assert tx == Transaction(
        id=7, date=datetime(2025, 1, 15), description="Groceries", amount=-45.5, category_id=None
    )
