"""Compute several pivots over the same records in parallel.

Each pivot is independent and pure, so the pivots for every tab of a
dashboard can be computed as separate Dask tasks. The record collection is
shared read-only between tasks.
"""
from __future__ import annotations

import logging
from typing import Any, Sequence
from typing import cast, Any as TypingAny

from dask import delayed, compute  # type: ignore[attr-defined]

from pivot_engine.aggregate.pivot import compute_pivot
from pivot_engine.clean.normalize import SCHEMAS, Record
from pivot_engine.models import PivotRequest, PivotResult

log = logging.getLogger(__name__)


def _run_request(records: Sequence[Record], request: PivotRequest) -> PivotResult:
    """Runs inside a worker (delayed task)."""
    return compute_pivot(
        records,
        request.dimension,
        request.buckets,
        request.metric,
        mode=request.mode,
        schema=SCHEMAS[request.preset],
        growth=request.growth,
        include_undated=request.include_undated,
    )


def compute_pivots(
    records: Sequence[Record],
    requests: Sequence[PivotRequest],
    scheduler: str = "threads",
) -> list[PivotResult]:
    """Compute one `PivotResult` per request, in request order.

    Args:
        records: Record mappings shared by every pivot.
        requests: Validated pivot definitions.
        scheduler: Dask scheduler name (``threads``, ``processes`` or
            ``sync``).

    Returns:
        Results aligned with `requests`.
    """
    if not requests:
        return []

    log.info("Computing %d pivots over %d records", len(requests), len(records))

    tasks = [delayed(_run_request)(records, req) for req in requests]

    # `compute` is untyped in our environment; cast to Any before calling
    results: tuple[Any, ...] = cast(TypingAny, compute)(*tasks, scheduler=scheduler)
    return list(results)
