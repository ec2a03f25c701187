from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from pivot_engine.clean.transform import clean_frame, load_records, records_from_frame


def test_records_from_frame_trims_columns_and_text() -> None:
    pdf = pd.DataFrame([{" source ": "  Google ", "date ": "2024-02-03", "amount": 10}])
    out = records_from_frame(pdf)
    assert out == [{"source": "Google", "date": "2024-02-03", "amount": 10}]
    assert list(pdf.columns) == [" source ", "date ", "amount"]


def test_clean_frame_leaves_numbers_alone() -> None:
    pdf = clean_frame(pd.DataFrame({"amount": [1.5, 2.0]}))
    assert pdf["amount"].tolist() == [1.5, 2.0]


def test_records_from_empty_frame() -> None:
    assert records_from_frame(pd.DataFrame()) == []


def test_load_records_keeps_csv_dates_as_text(tmp_path: Path) -> None:
    path = tmp_path / "leads.csv"
    path.write_text("date,source,amount\n05/02/2024,Google,1200\n06/02/2024,,\n", encoding="utf-8")
    records = load_records(path)
    assert records[0]["date"] == "05/02/2024"
    assert records[0]["amount"] == "1200"
    assert pd.isna(records[1]["source"])


def test_load_records_json(tmp_path: Path) -> None:
    path = tmp_path / "sales.json"
    path.write_text('[{"paymentDate": "2024-03-01", "paymentValue": 50}]', encoding="utf-8")
    assert load_records(path) == [{"paymentDate": "2024-03-01", "paymentValue": 50}]


def test_load_records_rejects_unknown_format(tmp_path: Path) -> None:
    path = tmp_path / "leads.xlsx"
    path.write_bytes(b"")
    with pytest.raises(ValueError):
        load_records(path)
