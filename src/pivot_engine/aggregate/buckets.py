"""Calendar-month bucket keys and bucket range policies.

A bucket key is the string ``"YYYY-MM"``. Keys sort lexicographically in
chronological order, which is what lets results be ordered and compared as
plain strings. Everything here works on calendar dates as given; there is no
timezone handling.
"""
from __future__ import annotations

import re
from datetime import date
from typing import Iterable, Sequence

BUCKET_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def bucket_key(d: date) -> str:
    """Return the ``"YYYY-MM"`` bucket of a date."""
    return f"{d.year:04d}-{d.month:02d}"


def month_number(d: date) -> int:
    return d.month


def year(d: date) -> int:
    return d.year


def parse_bucket(key: str) -> tuple[int, int]:
    """Split a bucket key into ``(year, month)``.

    Raises:
        ValueError: if `key` is not a ``YYYY-MM`` string.
    """
    m = BUCKET_RE.match(key) if isinstance(key, str) else None
    if not m:
        raise ValueError(f"Invalid bucket key {key!r}; expected 'YYYY-MM'")
    return int(m.group(1)), int(m.group(2))


def _key(y: int, m: int) -> str:
    return f"{y:04d}-{m:02d}"


def previous_bucket(key: str) -> str:
    """Return the bucket of the preceding calendar month."""
    y, m = parse_bucket(key)
    if m == 1:
        return _key(y - 1, 12)
    return _key(y, m - 1)


def next_bucket(key: str) -> str:
    y, m = parse_bucket(key)
    if m == 12:
        return _key(y + 1, 1)
    return _key(y, m + 1)


def same_month_previous_year(key: str) -> str:
    """Return the bucket with the same month-number one year earlier."""
    y, m = parse_bucket(key)
    return _key(y - 1, m)


def bucket_range(start: str, end: str) -> list[str]:
    """Return every bucket from `start` to `end` inclusive, ascending.

    An empty list is returned when `end` precedes `start`.
    """
    parse_bucket(start)
    parse_bucket(end)
    out: list[str] = []
    current = start
    while current <= end:
        out.append(current)
        current = next_bucket(current)
    return out


def validate_buckets(buckets: Iterable[str]) -> list[str]:
    """Validate bucket keys and drop duplicates, keeping the first occurrence.

    Raises:
        ValueError: on the first malformed key.
    """
    seen: set[str] = set()
    out: list[str] = []
    for b in buckets:
        parse_bucket(b)
        if b not in seen:
            seen.add(b)
            out.append(b)
    return out


# =========================================================
# RANGE POLICIES
# =========================================================

def trailing_months(n: int, today: date | None = None) -> list[str]:
    """Return the `n` month buckets ending with `today`'s month, ascending.

    Args:
        n: Window width in months (must be positive).
        today: Reference date; defaults to `date.today()`.
    """
    if n < 1:
        raise ValueError("n must be a positive number of months")
    current = bucket_key(today or date.today())
    out = [current]
    for _ in range(n - 1):
        current = previous_bucket(current)
        out.append(current)
    out.reverse()
    return out


def year_over_year_months(years: Sequence[int], through_month: int = 12) -> list[str]:
    """Return the buckets compared in a year-over-year table, ascending.

    Every year contributes months 1..12 except the last, which stops at
    `through_month` (the current month for a year still in progress).

    Args:
        years: Calendar years to include, e.g. ``(2024, 2025)``.
        through_month: Last month (1..12) shown for the final year.
    """
    if not 1 <= through_month <= 12:
        raise ValueError("through_month must be between 1 and 12")
    ordered = sorted(set(years))
    out: list[str] = []
    for y in ordered:
        last = through_month if y == ordered[-1] else 12
        out.extend(_key(y, m) for m in range(1, last + 1))
    return out
