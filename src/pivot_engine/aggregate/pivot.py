"""Pivot orchestration.

`compute_pivot` runs the whole chain for one view: normalize records, group
them into raw accumulators, fill the requested bucket range, pool totals,
derive the metric and compute growth.

Expectations:
- Input: read-only record mappings; they are never modified.
- Output: a `PivotResult` whose rows are rectangular over the bucket range,
  with dimensions in sorted order so identical input always gives identical
  output.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Sequence

from pivot_engine.aggregate.accumulator import (
    Grouped,
    RawAccumulator,
    aggregate,
    pool,
    totals,
)
from pivot_engine.aggregate.buckets import validate_buckets
from pivot_engine.aggregate.gaps import fill_gaps, fill_row
from pivot_engine.aggregate.growth import (
    MONTH_OVER_MONTH,
    comparison_bucket,
    growth_row,
)
from pivot_engine.aggregate.metrics import MetricFn, get_metric
from pivot_engine.clean.normalize import (
    GENERIC_SCHEMA,
    DimensionKey,
    NormalizedRecord,
    Record,
    RecordSchema,
    normalize_records,
)
from pivot_engine.models import PivotResult

log = logging.getLogger(__name__)

BucketRange = Sequence[str] | Callable[[], Sequence[str]]

_ALL = "*"


def _value(row: dict[str, RawAccumulator] | None, bucket: str, fn: MetricFn) -> float:
    """Metric of one cell, treating a missing cell as a zero accumulator."""
    acc = row.get(bucket) if row else None
    return float(fn(acc if acc is not None else RawAccumulator()))


def _compared_values(
    row: dict[str, RawAccumulator] | None,
    buckets: list[str],
    compare: Callable[[str], str],
    fn: MetricFn,
) -> dict[str, float]:
    return {b: _value(row, compare(b), fn) for b in buckets}


def _overall(normalized: list[NormalizedRecord], fn: MetricFn) -> dict[str, float]:
    everything = aggregate(normalized, bucket_key=lambda _: _ALL)
    return {d: float(fn(everything[d][_ALL])) for d in sorted(everything)}


def compute_pivot(
    records: Iterable[Record],
    dimension: DimensionKey,
    bucket_range: BucketRange,
    metric: str,
    mode: str = MONTH_OVER_MONTH,
    schema: RecordSchema = GENERIC_SCHEMA,
    growth: bool = True,
    include_undated: bool = False,
) -> PivotResult:
    """Compute a dimension × month pivot of `metric`.

    Args:
        records: Raw record mappings.
        dimension: Field name, or callable returning the dimension of a raw
            record. Blank values are grouped under ``"Unknown"``.
        bucket_range: Ordered ``YYYY-MM`` keys, or a callable returning them.
        metric: Registered metric name (see `aggregate.metrics`).
        mode: ``"month-over-month"`` or ``"year-over-year"``; selects which
            bucket each cell's growth is compared against.
        schema: Where the record facts live.
        growth: Compute `growth` and `total_growth` when true.
        include_undated: Compute `overall`, which also counts records that
            could not be placed in a bucket.

    Returns:
        A `PivotResult`.

    Raises:
        UnknownMetricError: if `metric` is not registered.
        ValueError: if `mode` is unknown or a bucket key is malformed.
    """
    metric_def = get_metric(metric)
    compare = comparison_bucket(mode)
    buckets = validate_buckets(bucket_range() if callable(bucket_range) else bucket_range)
    fn = metric_def.fn

    normalized = normalize_records(records, dimension, schema)
    undated = sum(1 for r in normalized if not r.bucketable)
    if undated:
        log.debug("%d of %d records have no usable date", undated, len(normalized))

    grouped: Grouped = aggregate(normalized)
    raw_totals = totals(grouped)

    filled = fill_gaps(grouped, buckets)
    total_row = fill_row(raw_totals, buckets)
    dims = sorted(filled)

    rows = {d: {b: float(fn(filled[d][b])) for b in buckets} for d in dims}
    totals_values = {b: float(fn(total_row[b])) for b in buckets}
    row_totals = {d: float(fn(pool(filled[d].values()))) for d in dims}
    grand_total = float(fn(pool(total_row.values())))

    growth_rows: dict[str, dict[str, float]] | None = None
    total_growth: dict[str, float] | None = None
    if growth:
        growth_rows = {
            d: growth_row(rows[d], _compared_values(grouped.get(d), buckets, compare, fn))
            for d in dims
        }
        total_growth = growth_row(
            totals_values, _compared_values(raw_totals, buckets, compare, fn)
        )

    overall = _overall(normalized, fn) if include_undated else None

    log.info(
        "Computed %s pivot (%s): %d dimensions x %d buckets from %d records",
        metric,
        mode,
        len(dims),
        len(buckets),
        len(normalized),
    )

    return PivotResult(
        metric=metric_def.name,
        kind=metric_def.kind,
        mode=mode,
        buckets=buckets,
        rows=rows,
        totals=totals_values,
        row_totals=row_totals,
        grand_total=grand_total,
        growth=growth_rows,
        total_growth=total_growth,
        overall=overall,
        undated_count=undated,
    )


def rank_dimensions(
    result: PivotResult,
    n: int = 5,
    bucket: str | None = None,
    ascending: bool = False,
) -> list[tuple[str, float]]:
    """Return the top (or bottom) `n` dimensions of a pivot.

    Args:
        result: A computed pivot.
        n: Number of dimensions to return.
        bucket: Rank by this bucket's value; by the pooled row total when
            omitted.
        ascending: Return the lowest values first (a "bottom" list).

    Raises:
        ValueError: if `bucket` is not part of the pivot's range.
    """
    if bucket is not None and bucket not in result.buckets:
        raise ValueError(f"Bucket {bucket!r} is not in the pivot range")

    if bucket is None:
        values = result.row_totals
    else:
        values = {d: row[bucket] for d, row in result.rows.items()}

    sign = 1 if ascending else -1
    ranked = sorted(values.items(), key=lambda kv: (sign * kv[1], kv[0]))
    return ranked[: max(n, 0)]
