"""Record normalization.

Raw records arrive as read-only mappings exported from spreadsheets and
booking systems, so dates come in several dialects and numeric facts are
often blank or textual. Everything in this module is total: bad values turn
into ``None`` (timestamps), ``0.0`` (numbers) or ``"Unknown"`` (dimensions)
and nothing raises on data.

A `RecordSchema` tells `normalize` where the facts live in a record and which
predicates mark a record as converted, trial-completed or lost.
"""
from __future__ import annotations

import calendar
import math
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Callable, Iterable, Mapping

import pandas as pd

UNKNOWN = "Unknown"

Record = Mapping[str, Any]
Predicate = Callable[[Record], bool]
DimensionKey = str | Callable[[Record], Any]

ISO_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T\s].*)?$")
DMY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
MY_RE = re.compile(r"^(\d{1,2})/(\d{4})$")
YM_RE = re.compile(r"^(\d{4})-(\d{1,2})$")
MONTH_NAME_RE = re.compile(r"^([A-Za-z]{3,9})[\s\-]+(\d{4})$")

_MONTHS = {
    name.lower(): i
    for names in (calendar.month_abbr, calendar.month_name)
    for i, name in enumerate(names)
    if name
}
_MONTHS["sept"] = 9

_TRUE_STRINGS = {"true", "yes", "y", "1"}


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _make_date(year: int, month: int, day: int = 1) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_timestamp(value: Any) -> date | None:
    """Parse a record timestamp into a calendar date.

    Accepted inputs are `date`/`datetime` objects (including pandas
    timestamps) and strings in ISO ``YYYY-MM-DD`` form (a trailing time part
    is ignored, no timezone conversion happens) or ``DD/MM/YYYY``. Month-only
    strings (``MM/YYYY``, ``YYYY-MM``, ``Jan 2024``, ``Jan-2024``) map to the
    first day of that month.

    Returns:
        The parsed `date`, or ``None`` when the value cannot be placed on the
        calendar.
    """
    if _is_missing(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text or text == "-":
        return None

    m = ISO_RE.match(text)
    if m:
        return _make_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = DMY_RE.match(text)
    if m:
        return _make_date(int(m.group(3)), int(m.group(2)), int(m.group(1)))

    m = MY_RE.match(text)
    if m:
        return _make_date(int(m.group(2)), int(m.group(1)))

    m = YM_RE.match(text)
    if m:
        return _make_date(int(m.group(1)), int(m.group(2)))

    m = MONTH_NAME_RE.match(text)
    if m:
        month = _MONTHS.get(m.group(1).lower())
        if month is None:
            return None
        return _make_date(int(m.group(2)), month)

    return None


def coerce_number(value: Any) -> float:
    """Return `value` as a finite float, or ``0.0`` if it is not numeric.

    Thousands separators in strings are ignored (``"1,250.50"`` → 1250.5).
    """
    if _is_missing(value):
        return 0.0
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def normalize_dimension(value: Any) -> str:
    """Return the canonical dimension label; blanks become ``"Unknown"``."""
    if _is_missing(value):
        return UNKNOWN
    text = str(value).strip()
    return text or UNKNOWN


# -----------------------------
# Predicates
# -----------------------------
def never(record: Record) -> bool:
    return False


def field_equals(field_name: str, *values: str) -> Predicate:
    """Predicate matching when ``record[field_name]`` equals one of `values`.

    Values are compared as stripped strings, case-sensitively.
    """
    wanted = frozenset(values)

    def _pred(record: Record) -> bool:
        raw = record.get(field_name)
        if _is_missing(raw):
            return False
        return str(raw).strip() in wanted

    return _pred


def field_truthy(field_name: str) -> Predicate:
    """Predicate matching booleans, non-zero numbers and yes/true strings."""

    def _pred(record: Record) -> bool:
        raw = record.get(field_name)
        if _is_missing(raw):
            return False
        if isinstance(raw, str):
            return raw.strip().lower() in _TRUE_STRINGS
        if isinstance(raw, (bool, int, float)):
            return bool(raw)
        return coerce_number(raw) != 0.0

    return _pred


def any_of(*predicates: Predicate) -> Predicate:
    def _pred(record: Record) -> bool:
        return any(p(record) for p in predicates)

    return _pred


# -----------------------------
# Schema + normalized record
# -----------------------------
@dataclass(frozen=True)
class RecordSchema:
    """Where a record keeps its facts.

    Attributes:
        timestamp_field: Field holding the event date.
        amount_field: Field summed into ``sum_amount`` (``None`` to skip).
        vat_field: Field summed into ``sum_vat`` (``None`` to skip).
        converted: Predicate marking a converted record.
        trial: Predicate marking a record that completed the trial stage.
        lost: Predicate marking a lost record.
        counters: Extra named predicates, each counted per cell.
        sums: Extra named numeric facts, ``name → field``, each summed per
            cell (sessions, customers, payouts...).
        valid_from: Earliest accepted date; earlier records are undated.
        valid_until: Latest accepted date; later records are undated.
    """
    timestamp_field: str = "date"
    amount_field: str | None = "amount"
    vat_field: str | None = None
    converted: Predicate = never
    trial: Predicate = never
    lost: Predicate = never
    counters: Mapping[str, Predicate] = field(default_factory=dict)
    sums: Mapping[str, str] = field(default_factory=dict)
    valid_from: date | None = None
    valid_until: date | None = None

    def with_window(self, valid_from: date | None, valid_until: date | None) -> "RecordSchema":
        """Return a copy that only accepts dates inside ``[valid_from, valid_until]``."""
        return replace(self, valid_from=valid_from, valid_until=valid_until)


GENERIC_SCHEMA = RecordSchema(
    timestamp_field="date",
    amount_field="amount",
    converted=field_truthy("converted"),
    trial=field_truthy("trial"),
    lost=field_truthy("lost"),
)

LEADS_SCHEMA = RecordSchema(
    timestamp_field="createdAt",
    amount_field="ltv",
    converted=field_equals("conversionStatus", "Converted"),
    trial=any_of(
        field_equals("stage", "Trial Completed"),
        field_equals("trialStatus", "Completed"),
    ),
    lost=any_of(field_equals("conversionStatus", "Lost"), field_equals("stage", "Lost")),
)

SALES_SCHEMA = RecordSchema(
    timestamp_field="paymentDate",
    amount_field="paymentValue",
    vat_field="paymentVAT",
)

PAYROLL_SCHEMA = RecordSchema(
    timestamp_field="monthYear",
    amount_field="totalPaid",
    sums={
        "sessions": "totalSessions",
        "emptySessions": "totalEmptySessions",
        "nonEmptySessions": "totalNonEmptySessions",
        "customers": "totalCustomers",
    },
)

SCHEMAS: dict[str, RecordSchema] = {
    "generic": GENERIC_SCHEMA,
    "leads": LEADS_SCHEMA,
    "sales": SALES_SCHEMA,
    "payroll": PAYROLL_SCHEMA,
}


@dataclass(frozen=True)
class NormalizedRecord:
    """Canonical view of one record; ``timestamp is None`` means undated."""
    timestamp: date | None
    dimension: str
    amount: float = 0.0
    vat: float = 0.0
    converted: bool = False
    trial: bool = False
    lost: bool = False
    counters: tuple[str, ...] = ()
    sums: tuple[tuple[str, float], ...] = ()

    @property
    def bucketable(self) -> bool:
        return self.timestamp is not None


def dimension_value(record: Record, dimension: DimensionKey) -> str:
    """Extract and normalize the dimension of `record`.

    Args:
        record: Raw record mapping.
        dimension: A field name or a callable returning the raw value.
    """
    raw = dimension(record) if callable(dimension) else record.get(dimension)
    return normalize_dimension(raw)


def normalize(
    record: Record,
    dimension: DimensionKey,
    schema: RecordSchema = GENERIC_SCHEMA,
) -> NormalizedRecord:
    """Normalize one raw record according to `schema`.

    Records whose timestamp does not parse, or falls outside the schema's
    accepted window, come back with ``timestamp=None``; they are still
    returned so callers can count them in non-time-bucketed totals.
    """
    ts = parse_timestamp(record.get(schema.timestamp_field))
    if ts is not None:
        if schema.valid_from is not None and ts < schema.valid_from:
            ts = None
        elif schema.valid_until is not None and ts > schema.valid_until:
            ts = None

    amount = coerce_number(record.get(schema.amount_field)) if schema.amount_field else 0.0
    vat = coerce_number(record.get(schema.vat_field)) if schema.vat_field else 0.0

    return NormalizedRecord(
        timestamp=ts,
        dimension=dimension_value(record, dimension),
        amount=amount,
        vat=vat,
        converted=bool(schema.converted(record)),
        trial=bool(schema.trial(record)),
        lost=bool(schema.lost(record)),
        counters=tuple(name for name, pred in schema.counters.items() if pred(record)),
        sums=tuple((name, coerce_number(record.get(f))) for name, f in schema.sums.items()),
    )


def normalize_records(
    records: Iterable[Record],
    dimension: DimensionKey,
    schema: RecordSchema = GENERIC_SCHEMA,
) -> list[NormalizedRecord]:
    """Normalize every record; the input iterable is consumed once."""
    return [normalize(r, dimension, schema) for r in records]
