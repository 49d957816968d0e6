"""
Incremental candlestick cache.

The broker returns the latest ``size`` bars newest-first on every call.
``RecordCache.merge`` walks such a batch in delivery order and folds it
into the cached ascending series:

    * bars newer than the last cached bar are appended,
    * a bar with the same timestamp as the last cached bar replaces it
      (the newest bar is still forming and keeps changing),
    * the first bar older than that ends the walk, since everything from
      there on is already cached.

The series is then trimmed from the front to ``size`` bars.
"""

from __future__ import annotations

import threading
from typing import Any, Hashable, Iterable, Optional, Sequence

from oandav20.core.errors import DataError
from oandav20.core.models import Record
from oandav20.helpers.convert import to_float, to_int


def parse_kline_rows(rows: Iterable[Any]) -> list[Record]:
    """
    Convert ``[time_ms, open, high, low, close, volume]`` rows to Records,
    keeping the delivered order. ``time`` becomes unix seconds.
    """
    records = []
    for row in rows:
        if not isinstance(row, (list, tuple)) or len(row) < 6:
            raise DataError(f"malformed kline row: {row!r}")
        try:
            time_ms = to_int(row[0], strict=True)
        except ValueError:
            raise DataError(f"malformed kline time: {row[0]!r}") from None
        records.append(Record(
            time=time_ms // 1000,
            open=to_float(row[1]),
            high=to_float(row[2]),
            low=to_float(row[3]),
            close=to_float(row[4]),
            volume=to_float(row[5]),
        ))
    return records


class RecordCache:
    """Per-key ascending, de-duplicated, bounded series of Records."""

    def __init__(self) -> None:
        self._series: dict[Hashable, list[Record]] = {}
        self._lock = threading.Lock()

    def merge(self, key: Hashable, fetched: Sequence[Record], size: int) -> list[Record]:
        """
        Merge ``fetched`` (newest first) into the series for ``key`` and
        return a copy of the whole series, at most ``size`` bars long.
        """
        with self._lock:
            series = self._series.setdefault(key, [])
            last_time: Optional[int] = series[-1].time if series else None

            new_records: list[Record] = []
            for record in fetched:
                if new_records and record.time >= new_records[0].time:
                    # duplicate or out-of-order bar inside the batch
                    continue
                if last_time is None or record.time > last_time:
                    new_records.insert(0, record)
                elif record.time == last_time:
                    series[-1] = record
                else:
                    break

            series.extend(new_records)
            if len(series) > size:
                del series[: len(series) - size]
            return list(series)

    def get(self, key: Hashable) -> list[Record]:
        with self._lock:
            return list(self._series.get(key, []))

    def clear(self, key: Optional[Hashable] = None) -> None:
        with self._lock:
            if key is None:
                self._series.clear()
            else:
                self._series.pop(key, None)

    def __len__(self) -> int:
        return len(self._series)
