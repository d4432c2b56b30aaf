from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pytest
from pydantic import ValidationError

from spending_analysis.ledger import load_ledger, write_ledger
from spending_analysis.models import Category
from tests.helpers.txns import make_tx


def test_write_then_load_preserves_records(tmp_path: Path):
    txs = [
        make_tx(-45.5, date="2025-01-15T08:00:00", description="Groceries", category_id=1, id=1),
        make_tx(12.0, date="2025-01-16", description="Refund", category_id=None, id=2),
    ]
    cats = [Category(id=1, name="Food", color="#4CAF50")]

    path = write_ledger(tmp_path / "nested" / "ledger.json", txs, cats)
    ledger = load_ledger(path)

    assert ledger.transactions == tuple(txs)
    assert ledger.categories == tuple(cats)
    assert not (tmp_path / "nested" / "ledger.json.tmp").exists()


def test_load_normalizes_offset_dates_to_naive_utc(tmp_path: Path):
    path = tmp_path / "ledger.json"
    path.write_text(
        json.dumps(
            {
                "transactions": [
                    {"id": 1, "date": "2025-01-15T23:00:00-02:00", "description": "x", "amount": 1}
                ]
            }
        ),
        encoding="utf-8",
    )
    ledger = load_ledger(path)
    assert ledger.transactions[0].date == datetime(2025, 1, 16, 1, 0)
    assert ledger.transactions[0].category_id is None
    assert ledger.categories == ()


@pytest.mark.parametrize(
    "doc",
    [
        {"transactions": [{"id": 1, "date": "nope", "description": "x", "amount": 1}]},
        {"transactions": [{"id": 1, "date": "2025-01-01", "description": " ", "amount": 1}]},
        {
            "transactions": [
                {"id": 1, "date": "2025-01-01", "description": "a", "amount": 1},
                {"id": 1, "date": "2025-01-02", "description": "b", "amount": 2},
            ]
        },
        {"categories": [{"id": 1, "name": "Food"}, {"id": 2, "name": "food"}]},
        {"categories": [{"id": 1, "name": "Food", "color": "green"}]},
        {"unexpected": []},
    ],
)
def test_load_rejects_malformed_ledgers(tmp_path: Path, doc):
    path = tmp_path / "ledger.json"
    path.write_text(json.dumps(doc), encoding="utf-8")
    with pytest.raises(ValidationError):
        load_ledger(path)


def test_load_missing_file_raises_oserror(tmp_path: Path):
    with pytest.raises(OSError):
        load_ledger(tmp_path / "missing.json")


def test_failed_replace_removes_temp_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    def fail_replace(src, dst):
        raise PermissionError("read-only target")

    monkeypatch.setattr("spending_analysis.ledger.os.replace", fail_replace)
    target = tmp_path / "ledger.json"

    with pytest.raises(PermissionError):
        write_ledger(target, [make_tx(-1.0, id=1)])

    assert not target.exists()
    assert not (tmp_path / "ledger.json.tmp").exists()


def test_writing_over_a_directory_leaves_no_temp_file(tmp_path: Path):
    target = tmp_path / "ledger.json"
    target.mkdir()

    with pytest.raises(OSError):
        write_ledger(target, [make_tx(-1.0, id=1)])

    assert target.is_dir()
    assert sorted(p.name for p in tmp_path.iterdir()) == ["ledger.json"]
