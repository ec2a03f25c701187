"""Pivot aggregation helpers.

This package contains the routines that turn normalized records into pivot
views: month bucket keys and range policies, additive raw accumulators, the
metric registry, gap filling, growth percentages and the `compute_pivot`
orchestration, plus a Dask-backed helper computing several pivots at once.
"""
