"""Gap filling: make a grouped map rectangular over a bucket range."""
from __future__ import annotations

from typing import Iterable

from pivot_engine.aggregate.accumulator import Grouped, RawAccumulator
from pivot_engine.aggregate.buckets import validate_buckets


def fill_gaps(grouped: Grouped, buckets: Iterable[str]) -> Grouped:
    """Return a rectangular copy of `grouped` restricted to `buckets`.

    Every dimension of `grouped` gets one accumulator per bucket, in range
    order, with a zero accumulator where no record fell. Buckets outside the
    range are left out. Accumulators are copied; `grouped` is not modified.

    Raises:
        ValueError: if a bucket key is malformed.
    """
    ordered = validate_buckets(buckets)
    out: Grouped = {}
    for dim, row in grouped.items():
        out[dim] = {
            b: row[b].copy() if b in row else RawAccumulator()
            for b in ordered
        }
    return out


def fill_row(row: dict[str, RawAccumulator], buckets: Iterable[str]) -> dict[str, RawAccumulator]:
    """Single-row variant of `fill_gaps`, used for the totals row."""
    return fill_gaps({"": row}, buckets)[""]
