"""pivot_engine package.

Contains the time-bucketed pivot engine behind the studio dashboards: record
normalization, monthly bucketing, grouping into raw accumulators, a metric
registry, gap filling, pooled totals and growth percentages.

Architecture:
- Records → Normalized records → Raw accumulators → Derived metrics
- Totals are recomputed from summed raw accumulators, never from metrics
- Dask is used to compute several independent pivots in parallel
- Pydantic models validate pivot requests and results
"""

from pivot_engine.aggregate.pivot import compute_pivot, rank_dimensions
from pivot_engine.models import PivotRequest, PivotResult

__all__ = [
    "__version__",
    "compute_pivot",
    "rank_dimensions",
    "PivotRequest",
    "PivotResult",
]
__version__ = "0.1.0"
