from __future__ import annotations

import dataclasses

import pytest
from pydantic import ValidationError

from spending_analysis.models import Category, ColumnMapping, ParseResult
from tests.helpers.txns import make_tx


def test_transaction_is_immutable():
    tx = make_tx(-10.0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        tx.amount = 5.0  # type: ignore[misc]


def test_transaction_magnitude():
    assert make_tx(-12.5).magnitude == 12.5


@pytest.mark.parametrize("color", ["#fff", "#4CAF50", None, ""])
def test_category_accepts_hex_colors(color):
    cat = Category(id=1, name=" Food ", color=color)
    assert cat.name == "Food"
    assert cat.color == (color or None)


@pytest.mark.parametrize("color", ["red", "#12345", "4CAF50"])
def test_category_rejects_non_hex_colors(color):
    with pytest.raises(ValidationError):
        Category(id=1, name="Food", color=color)


def test_category_rejects_blank_name():
    with pytest.raises(ValidationError):
        Category(id=1, name="   ")


def test_column_mapping_max_index_and_strict_ints():
    assert ColumnMapping(date_column=4, description_column=0, amount_column=2).max_index == 4
    with pytest.raises(ValidationError):
        ColumnMapping(date_column="0", description_column=1, amount_column=2)  # type: ignore[arg-type]


def test_parse_result_total_rows_default():
    assert ParseResult().total_rows == 0
