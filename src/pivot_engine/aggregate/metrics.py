"""Metric registry.

Every derived metric is one entry mapping a name to a function of a
`RawAccumulator`. Three shapes exist: a counter value, a ratio
``numerator / denominator * 100`` and an average ``sum / count``. Ratios and
averages return ``0`` for a zero denominator, never NaN or infinity, and are
not clamped: inconsistent counters may legitimately produce values above 100.

The ``kind`` of a metric tells display code how to format it and is not used
by the engine itself.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from pivot_engine.aggregate.accumulator import RawAccumulator

MetricFn = Callable[[RawAccumulator], float]

KINDS = ("count", "currency", "percentage", "average")


class UnknownMetricError(ValueError):
    """Raised when a metric name is not registered."""


@dataclass(frozen=True)
class Metric:
    name: str
    kind: str
    fn: MetricFn
    description: str = ""


METRICS: dict[str, Metric] = {}


def register_metric(name: str, kind: str, description: str = "") -> Callable[[MetricFn], MetricFn]:
    """Decorator adding `fn` to the registry under `name`.

    Raises:
        ValueError: if `kind` is not one of `KINDS` or `name` is taken.
    """
    if kind not in KINDS:
        raise ValueError(f"Unknown metric kind {kind!r}; expected one of {KINDS}")

    def _register(fn: MetricFn) -> MetricFn:
        if name in METRICS:
            raise ValueError(f"Metric {name!r} is already registered")
        METRICS[name] = Metric(name=name, kind=kind, fn=fn, description=description)
        return fn

    return _register


def get_metric(name: str) -> Metric:
    """Return the registered metric or raise `UnknownMetricError`."""
    try:
        return METRICS[name]
    except KeyError:
        raise UnknownMetricError(
            f"Unknown metric {name!r}; available: {', '.join(sorted(METRICS))}"
        ) from None


def compute_metric(acc: RawAccumulator, name: str) -> float:
    """Compute metric `name` from an accumulator."""
    return float(get_metric(name).fn(acc))


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator * 100


def _average(total: float, count: float) -> float:
    if count == 0:
        return 0.0
    return total / count


# =========================================================
# BUILT-IN METRICS
# =========================================================

@register_metric("count", "count", "Number of records")
def _count(acc: RawAccumulator) -> float:
    return acc.count


@register_metric("sum", "currency", "Sum of the amount fact")
def _sum(acc: RawAccumulator) -> float:
    return acc.sum_amount


@register_metric("averagePerRecord", "average", "Amount per record")
def _average_per_record(acc: RawAccumulator) -> float:
    return _average(acc.sum_amount, acc.count)


@register_metric("conversionRate", "percentage", "Converted records per record, in %")
def _conversion_rate(acc: RawAccumulator) -> float:
    return _ratio(acc.count_converted, acc.count)


@register_metric("stageConversionRate", "percentage", "Converted records per trial, in %")
def _stage_conversion_rate(acc: RawAccumulator) -> float:
    return _ratio(acc.count_converted, acc.count_trial)


@register_metric("lossRate", "percentage", "Lost records per record, in %")
def _loss_rate(acc: RawAccumulator) -> float:
    return _ratio(acc.count_lost, acc.count)


@register_metric("trialRate", "percentage", "Trials per record, in %")
def _trial_rate(acc: RawAccumulator) -> float:
    return _ratio(acc.count_trial, acc.count)


@register_metric("converted", "count", "Number of converted records")
def _converted(acc: RawAccumulator) -> float:
    return acc.count_converted


@register_metric("trials", "count", "Number of records that completed a trial")
def _trials(acc: RawAccumulator) -> float:
    return acc.count_trial


@register_metric("lost", "count", "Number of lost records")
def _lost(acc: RawAccumulator) -> float:
    return acc.count_lost


@register_metric("vat", "currency", "Sum of the VAT fact")
def _vat(acc: RawAccumulator) -> float:
    return acc.sum_vat


@register_metric("netRevenue", "currency", "Amount net of VAT")
def _net_revenue(acc: RawAccumulator) -> float:
    return acc.sum_amount - acc.sum_vat


# Trainer metrics, fed by the payroll preset's named sums.

@register_metric("sessions", "count", "Number of sessions taught")
def _sessions(acc: RawAccumulator) -> float:
    return acc.sums.get("sessions", 0.0)


@register_metric("customers", "count", "Number of customers across sessions")
def _customers(acc: RawAccumulator) -> float:
    return acc.sums.get("customers", 0.0)


@register_metric("classAverageInclEmpty", "average", "Customers per session, empty sessions included")
def _class_average_incl_empty(acc: RawAccumulator) -> float:
    return _average(acc.sums.get("customers", 0.0), acc.sums.get("sessions", 0.0))


@register_metric("classAverageExclEmpty", "average", "Customers per non-empty session")
def _class_average_excl_empty(acc: RawAccumulator) -> float:
    return _average(acc.sums.get("customers", 0.0), acc.sums.get("nonEmptySessions", 0.0))
