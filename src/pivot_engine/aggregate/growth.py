"""Period-over-period growth percentages.

`growth` turns two derived-metric values into a signed percentage. A zero
base is a policy decision: flat at zero stays ``0``, and any increase from
zero reads as ``100`` (a full-scale increase, not "infinite").
"""
from __future__ import annotations

from typing import Callable

from pivot_engine.aggregate.buckets import previous_bucket, same_month_previous_year

MONTH_OVER_MONTH = "month-over-month"
YEAR_OVER_YEAR = "year-over-year"
MODES = (MONTH_OVER_MONTH, YEAR_OVER_YEAR)


def growth(current: float, previous: float) -> float:
    """Return the percentage change from `previous` to `current`."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def comparison_bucket(mode: str) -> Callable[[str], str]:
    """Return the function mapping a bucket to the bucket it is compared with.

    Raises:
        ValueError: if `mode` is not a known comparison mode.
    """
    if mode == MONTH_OVER_MONTH:
        return previous_bucket
    if mode == YEAR_OVER_YEAR:
        return same_month_previous_year
    raise ValueError(f"Unknown mode {mode!r}; expected one of {MODES}")


def growth_row(
    values: dict[str, float],
    previous_values: dict[str, float],
) -> dict[str, float]:
    """Compute growth per bucket given the compared value for each bucket."""
    return {b: growth(v, previous_values.get(b, 0.0)) for b, v in values.items()}
