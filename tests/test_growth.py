from __future__ import annotations

import pytest

from pivot_engine.aggregate.growth import comparison_bucket, growth, growth_row


def test_growth_zero_base_policy() -> None:
    assert growth(5, 0) == 100
    assert growth(0, 0) == 0
    assert growth(-5, 0) == 0


def test_growth_percentage_change() -> None:
    assert growth(50, 100) == -50
    assert growth(150, 100) == 50
    assert growth(0, 40) == -100


def test_comparison_bucket_by_mode() -> None:
    assert comparison_bucket("month-over-month")("2024-01") == "2023-12"
    assert comparison_bucket("year-over-year")("2025-04") == "2024-04"
    with pytest.raises(ValueError):
        comparison_bucket("week-over-week")


def test_growth_row_defaults_missing_previous_to_zero() -> None:
    assert growth_row({"2024-01": 10.0, "2024-02": 5.0}, {"2024-02": 10.0}) == {
        "2024-01": 100.0,
        "2024-02": -50.0,
    }
