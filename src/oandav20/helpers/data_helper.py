"""Helper utilities for turning cached candles into DataFrames and CSV files.

This module provides:
- records_to_df: Records -> DataFrame with a UTC ``open_time`` column.
- save_records_to_csv: CSV writer with optional directory creation.
"""

from __future__ import annotations

import os
from typing import Iterable

import pandas as pd

from oandav20.core.models import Record

RECORD_COLUMNS = ["open_time", "open", "high", "low", "close", "volume"]


def records_to_df(records: Iterable[Record]) -> pd.DataFrame:
    """Convert Records to a DataFrame, one row per bar, in the given order.

    ``open_time`` is a UTC-aware datetime; price and volume columns are float.
    """
    rows = [
        {
            "open_time": r.time,
            "open": r.open,
            "high": r.high,
            "low": r.low,
            "close": r.close,
            "volume": r.volume,
        }
        for r in records
    ]
    df = pd.DataFrame(rows, columns=RECORD_COLUMNS)
    df["open_time"] = pd.to_datetime(df["open_time"], unit="s", utc=True)
    numeric_cols = ["open", "high", "low", "close", "volume"]
    df[numeric_cols] = df[numeric_cols].astype(float)
    return df


def save_records_to_csv(
    records: Iterable[Record],
    file_path: str,
    *,
    create_dirs: bool = True,
    date_format: str = "%Y-%m-%d %H:%M:%S",
) -> pd.DataFrame:
    """Write Records to CSV and return the DataFrame that was written.

    Raises
    - OSError: On I/O errors when writing the file
    """
    df = records_to_df(records)

    parent = os.path.dirname(os.path.abspath(file_path))
    if create_dirs and parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)

    df.to_csv(file_path, index=False, date_format=date_format)
    return df
