from __future__ import annotations

import pytest

from pivot_engine.aggregate.accumulator import RawAccumulator
from pivot_engine.aggregate.metrics import (
    METRICS,
    UnknownMetricError,
    compute_metric,
    get_metric,
    register_metric,
)


def _acc() -> RawAccumulator:
    return RawAccumulator(
        count=8,
        sum_amount=1000.0,
        sum_vat=150.0,
        count_converted=2,
        count_trial=4,
        count_lost=3,
        sums={"sessions": 10.0, "nonEmptySessions": 8.0, "customers": 60.0},
    )


@pytest.mark.parametrize(
    "name, expected",
    [
        ("count", 8),
        ("sum", 1000.0),
        ("averagePerRecord", 1000.0 / 8),
        ("conversionRate", 2 / 8 * 100),
        ("stageConversionRate", 2 / 4 * 100),
        ("lossRate", 3 / 8 * 100),
        ("trialRate", 4 / 8 * 100),
        ("converted", 2),
        ("trials", 4),
        ("lost", 3),
        ("vat", 150.0),
        ("netRevenue", 850.0),
        ("sessions", 10.0),
        ("customers", 60.0),
        ("classAverageInclEmpty", 6.0),
        ("classAverageExclEmpty", 7.5),
    ],
)
def test_metric_formulas(name: str, expected: float) -> None:
    assert compute_metric(_acc(), name) == expected


@pytest.mark.parametrize("name", sorted(METRICS))
def test_every_metric_saturates_to_zero_on_empty_cell(name: str) -> None:
    assert compute_metric(RawAccumulator(), name) == 0


def test_stage_rate_uses_trial_denominator_only() -> None:
    acc = RawAccumulator(count=10, count_converted=3, count_trial=0)
    assert compute_metric(acc, "stageConversionRate") == 0
    assert compute_metric(acc, "conversionRate") == 30


def test_inconsistent_counters_are_not_clamped() -> None:
    acc = RawAccumulator(count=2, count_converted=3)
    assert compute_metric(acc, "conversionRate") == 150


def test_unknown_metric_fails_fast() -> None:
    with pytest.raises(UnknownMetricError) as exc:
        compute_metric(RawAccumulator(), "totalLeadz")
    assert isinstance(exc.value, ValueError)
    assert "conversionRate" in str(exc.value)


def test_register_metric_adds_one_entry() -> None:
    try:
        @register_metric("vipShare", "percentage", "VIP records per record, in %")
        def _vip_share(acc: RawAccumulator) -> float:
            return acc.extra.get("vip", 0) / acc.count * 100 if acc.count else 0.0

        acc = RawAccumulator(count=4, extra={"vip": 1})
        assert compute_metric(acc, "vipShare") == 25
        assert get_metric("vipShare").kind == "percentage"
    finally:
        METRICS.pop("vipShare", None)


def test_register_metric_rejects_duplicates_and_bad_kinds() -> None:
    with pytest.raises(ValueError):
        register_metric("count", "count")(lambda acc: 0.0)
    with pytest.raises(ValueError):
        register_metric("whatever", "ratio")
