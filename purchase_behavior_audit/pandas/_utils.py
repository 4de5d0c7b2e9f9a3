"""Shared utilities for pandas conversion operations."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

import pandas as pd  # type: ignore


def decimal_to_float(value: Decimal | None) -> float | None:
    """Convert Decimal to float for pandas compatibility, keeping None."""
    if value is None:
        return None
    return float(value)


def cell_to_datetime(value: Any) -> datetime | None:
    """Convert a DataFrame cell to a Python datetime.

    ``NaT``, ``NaN`` and ``None`` all become ``None``, which the record
    contracts treat as a missing timestamp.

    Example:
        >>> cell_to_datetime(pd.Timestamp("2024-01-05 10:00"))
        datetime.datetime(2024, 1, 5, 10, 0)
        >>> cell_to_datetime(pd.NaT) is None
        True
    """
    if value is None or pd.isna(value):
        return None
    return pd.Timestamp(value).to_pydatetime()


def cell_to_optional(value: Any) -> Any:
    """Return ``None`` for NaN-like cells, the value otherwise."""
    if value is None:
        return None
    if not isinstance(value, (list, dict)) and pd.isna(value):
        return None
    return value


def require_columns(df: pd.DataFrame, required: list[str]) -> None:
    """Raise ValueError if ``df`` lacks any of ``required``."""
    missing = set(required) - set(df.columns)
    if missing:
        raise ValueError(f"DataFrame missing required columns: {sorted(missing)}")
