"""Configuration helpers and Settings container.

This module provides a small `Settings` dataclass and `get_settings` which
reads the optional `PIVOT_*` environment variables (a `.env` file at the
project root is loaded first). None of them are required; malformed integers
are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

from dotenv import load_dotenv

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

@dataclass(frozen=True)
class Settings:
    """Container for engine and CLI configuration read from the environment.

    Attributes:
        total_label: Row label used for the synthetic totals row in tables.
        trailing_months: Default width of the month-over-month window.
        min_year: Optional earliest calendar year accepted by the normalizer.
        log_path: File the CLI writes logs to.
        log_level: Logging level name.
    """
    total_label: str
    trailing_months: int
    min_year: int | None
    log_path: Path
    log_level: str


def _int_env(name: str, default: int | None) -> int | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(
            f"{name} must be an integer (got {raw!r}). Fix it in .env or unset it."
        ) from None


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        RuntimeError: if `PIVOT_TRAILING_MONTHS` or `PIVOT_MIN_YEAR` is set
            but is not a valid integer, or the window is not positive.
    """
    total_label = os.getenv("PIVOT_TOTAL_LABEL", "TOTAL").strip() or "TOTAL"
    trailing_months = _int_env("PIVOT_TRAILING_MONTHS", 18)
    min_year = _int_env("PIVOT_MIN_YEAR", None)
    log_path = Path(os.getenv("PIVOT_LOG_PATH", "logs/pivot.log"))
    log_level = os.getenv("PIVOT_LOG_LEVEL", "INFO").strip().upper() or "INFO"

    if trailing_months is None or trailing_months < 1:
        raise RuntimeError("PIVOT_TRAILING_MONTHS must be a positive integer.")

    return Settings(
        total_label=total_label,
        trailing_months=trailing_months,
        min_year=min_year,
        log_path=log_path,
        log_level=log_level,
    )
