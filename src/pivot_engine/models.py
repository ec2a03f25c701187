"""Pydantic models used for pivot requests and results.

`PivotRequest` validates a pivot definition coming from the CLI or from a
batch of dashboard tabs; `PivotResult` is the nested numeric structure that
display code consumes.
"""

from __future__ import annotations

from typing import Literal

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator

from pivot_engine.aggregate.buckets import parse_bucket
from pivot_engine.aggregate.metrics import get_metric
from pivot_engine.clean.normalize import SCHEMAS

Mode = Literal["month-over-month", "year-over-year"]


class PivotRequest(BaseModel):
    """Definition of one pivot.

    Attributes:
        dimension: Record field used as the row dimension.
        metric: Registered metric name.
        mode: Growth comparison mode.
        buckets: Ordered ``YYYY-MM`` bucket range.
        preset: Record schema preset (``generic``, ``leads``, ``sales`` or ``payroll``).
        growth: Whether to compute growth percentages.
        include_undated: Whether to compute non-time-bucketed totals.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)
    dimension: str = Field(..., min_length=1)
    metric: str
    mode: Mode = "month-over-month"
    buckets: list[str] = Field(..., min_length=1)
    preset: str = "generic"
    growth: bool = True
    include_undated: bool = False

    @field_validator("metric")
    @classmethod
    def _known_metric(cls, v: str) -> str:
        get_metric(v)
        return v

    @field_validator("buckets")
    @classmethod
    def _valid_buckets(cls, v: list[str]) -> list[str]:
        for b in v:
            parse_bucket(b)
        return v

    @field_validator("preset")
    @classmethod
    def _known_preset(cls, v: str) -> str:
        if v not in SCHEMAS:
            raise ValueError(f"Unknown preset {v!r}; expected one of {sorted(SCHEMAS)}")
        return v


class PivotResult(BaseModel):
    """Pivot output: dimensions × buckets, plus totals and growth.

    Attributes:
        metric: Metric name the values were computed with.
        kind: Metric kind (count, currency, percentage, average).
        mode: Growth comparison mode.
        buckets: Ordered bucket range; every row has exactly these keys.
        rows: ``dimension → bucket → value``.
        totals: ``bucket → value`` recomputed from pooled raw counters.
        row_totals: ``dimension → value`` pooled over the whole range.
        grand_total: Value pooled over every dimension and bucket.
        growth: ``dimension → bucket → growth %`` when requested.
        total_growth: ``bucket → growth %`` of the totals row when requested.
        overall: ``dimension → value`` over all records, dated or not, when
            requested.
        undated_count: Records that could not be placed in a bucket.
    """
    model_config = ConfigDict(extra="forbid")
    metric: str
    kind: str
    mode: Mode
    buckets: list[str]
    rows: dict[str, dict[str, float]]
    totals: dict[str, float]
    row_totals: dict[str, float]
    grand_total: float
    growth: dict[str, dict[str, float]] | None = None
    total_growth: dict[str, float] | None = None
    overall: dict[str, float] | None = None
    undated_count: int = Field(0, ge=0)

    def to_frame(self, total_label: str = "TOTAL", total_column: str = "Total") -> pd.DataFrame:
        """Render the pivot as a DataFrame with a totals row and column.

        The totals row is always appended as the last row, even when a
        dimension carries the same label as `total_label`.
        """
        columns = [*self.buckets, total_column]
        body = pd.DataFrame.from_dict(self.rows, orient="index", columns=self.buckets)
        body[total_column] = [self.row_totals[d] for d in self.rows]
        total_row = pd.DataFrame(
            [[self.totals[b] for b in self.buckets] + [self.grand_total]],
            index=[total_label],
            columns=columns,
        )
        pdf = pd.concat([body, total_row]) if self.rows else total_row
        pdf.index.name = "dimension"
        return pdf

    def by_month_number(self, dimension: str | None = None) -> dict[int, dict[int, float]]:
        """Pair values by month-number across years.

        Args:
            dimension: Row to pair; the totals row when omitted.

        Returns:
            ``month (1..12) → year → value`` for every bucket in range.
        """
        values = self.totals if dimension is None else self.rows[dimension]
        out: dict[int, dict[int, float]] = {}
        for b in self.buckets:
            y, m = parse_bucket(b)
            out.setdefault(m, {})[y] = values[b]
        return dict(sorted(out.items()))
