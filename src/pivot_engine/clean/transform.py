"""DataFrame adapters.

Upstream data sources hand over pandas DataFrames or exported files; the
engine itself works on plain record mappings. This module is the boundary
between the two. Values are left as read (strings stay strings) so that all
date and number dialects are handled in one place by `clean.normalize`.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pandas as pd

log = logging.getLogger(__name__)


def clean_frame(pdf: pd.DataFrame) -> pd.DataFrame:
    """Return a copy with trimmed column names and trimmed text cells.

    Args:
        pdf: Raw DataFrame as exported from a sheet.

    Returns:
        Cleaned copy; the input frame is not modified.
    """
    pdf = pdf.copy()

    # -----------------------------
    # Normalize column names
    # -----------------------------
    pdf.columns = [str(c).strip() for c in pdf.columns]

    # -----------------------------
    # Trim text cells
    # -----------------------------
    for col in pdf.columns:
        if not pd.api.types.is_numeric_dtype(pdf[col]):
            pdf[col] = pdf[col].map(lambda v: v.strip() if isinstance(v, str) else v)

    return pdf


def records_from_frame(pdf: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a DataFrame into a list of record dicts (one per row)."""
    if pdf.empty:
        return []
    return clean_frame(pdf).to_dict(orient="records")


def load_records(path: Path) -> list[dict[str, Any]]:
    """Read a CSV or JSON export into record dicts.

    CSV cells are read as text; JSON date conversion is disabled.

    Raises:
        ValueError: if the file extension is neither ``.csv`` nor ``.json``.
    """
    suffix = path.suffix.lower()
    if suffix == ".csv":
        pdf = pd.read_csv(path, dtype=str)
    elif suffix == ".json":
        pdf = pd.read_json(path, convert_dates=False, dtype=False)
    else:
        raise ValueError(f"Unsupported input format: {path.suffix!r} (expected .csv or .json)")

    records = records_from_frame(pdf)
    log.info("Loaded %d records from %s", len(records), path)
    return records
