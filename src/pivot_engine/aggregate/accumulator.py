"""Raw accumulators, the grouping aggregator and the totals reducer.

Accumulators hold additive counters only. Derived metrics (rates, averages)
are never stored here: they are computed from accumulators at the very end,
after any summing across dimensions, so that totals are pooled rather than
averaged.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable

from pivot_engine.aggregate.buckets import bucket_key as _date_bucket_key
from pivot_engine.clean.normalize import UNKNOWN, NormalizedRecord

Grouped = dict[str, dict[str, "RawAccumulator"]]


@dataclass
class RawAccumulator:
    """Additive counters for one (dimension, bucket) cell.

    Attributes:
        count: Number of records.
        sum_amount: Sum of the amount fact (revenue, LTV, payout...).
        sum_vat: Sum of the VAT fact.
        count_converted: Records matching the converted predicate.
        count_trial: Records matching the trial predicate.
        count_lost: Records matching the lost predicate.
        extra: Counts for caller-defined counters, by name.
        sums: Totals of caller-defined numeric facts, by name.
    """
    count: int = 0
    sum_amount: float = 0.0
    sum_vat: float = 0.0
    count_converted: int = 0
    count_trial: int = 0
    count_lost: int = 0
    extra: dict[str, int] = field(default_factory=dict)
    sums: dict[str, float] = field(default_factory=dict)

    def add_record(self, rec: NormalizedRecord) -> None:
        self.count += 1
        self.sum_amount += rec.amount
        self.sum_vat += rec.vat
        if rec.converted:
            self.count_converted += 1
        if rec.trial:
            self.count_trial += 1
        if rec.lost:
            self.count_lost += 1
        for name in rec.counters:
            self.extra[name] = self.extra.get(name, 0) + 1
        for name, value in rec.sums:
            self.sums[name] = self.sums.get(name, 0.0) + value

    def merge(self, other: "RawAccumulator") -> None:
        """Add every counter of `other` into this accumulator."""
        self.count += other.count
        self.sum_amount += other.sum_amount
        self.sum_vat += other.sum_vat
        self.count_converted += other.count_converted
        self.count_trial += other.count_trial
        self.count_lost += other.count_lost
        for name, value in other.extra.items():
            self.extra[name] = self.extra.get(name, 0) + value
        for name, value in other.sums.items():
            self.sums[name] = self.sums.get(name, 0.0) + value

    def copy(self) -> "RawAccumulator":
        out = RawAccumulator()
        out.merge(self)
        return out


def record_bucket(rec: NormalizedRecord) -> str | None:
    """Default bucket function: the record's month, ``None`` if undated."""
    if rec.timestamp is None:
        return None
    return _date_bucket_key(rec.timestamp)


def record_dimension(rec: NormalizedRecord) -> str:
    return rec.dimension


def aggregate(
    records: Iterable[NormalizedRecord],
    dimension_key: Callable[[NormalizedRecord], str] = record_dimension,
    bucket_key: Callable[[NormalizedRecord], str | None] = record_bucket,
) -> Grouped:
    """Fold records into ``dimension → bucket → RawAccumulator`` in one pass.

    Records for which `bucket_key` returns ``None`` are skipped. A blank
    dimension key is grouped under ``"Unknown"``.

    Args:
        records: Normalized records.
        dimension_key: Returns the dimension label of a record.
        bucket_key: Returns the bucket of a record or ``None``.

    Returns:
        Nested dict of accumulators. Only cells with at least one record are
        present; use `gaps.fill_gaps` to make it rectangular.
    """
    grouped: Grouped = {}
    for rec in records:
        bucket = bucket_key(rec)
        if bucket is None:
            continue
        dim = (dimension_key(rec) or "").strip() or UNKNOWN
        row = grouped.setdefault(dim, {})
        acc = row.get(bucket)
        if acc is None:
            acc = row[bucket] = RawAccumulator()
        acc.add_record(rec)
    return grouped


def pool(cells: Iterable[RawAccumulator]) -> RawAccumulator:
    """Sum accumulators field by field into a new accumulator."""
    out = RawAccumulator()
    for acc in cells:
        out.merge(acc)
    return out


def totals(grouped: Grouped) -> dict[str, RawAccumulator]:
    """Sum raw accumulators across all dimensions, per bucket.

    The TOTAL row's metric must be recomputed from these sums; summing or
    averaging per-dimension rates gives the wrong answer.
    """
    out: dict[str, RawAccumulator] = {}
    for row in grouped.values():
        for bucket, acc in row.items():
            target = out.get(bucket)
            if target is None:
                target = out[bucket] = RawAccumulator()
            target.merge(acc)
    return out
