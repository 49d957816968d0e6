"""
Cooperative call pacer.

Every authenticated request records one call. Nothing is delayed per call:
the consumer calls ``auto_sleep()`` between batches, which blocks for
whatever time is still owed for the calls made since the previous pacing
point and then opens a new pacing epoch.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable

from oandav20.core.errors import ValidationError
from oandav20.helpers.convert import to_float

DEFAULT_LIMIT = 10.0

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Parameters
    ----------
    limit : float
        Ceiling in calls per second.
    clock : callable
        Nanosecond clock, ``time.monotonic_ns`` by default.
    sleep : callable
        Blocking sleep taking seconds, ``time.sleep`` by default.
    """

    def __init__(
        self,
        limit: float = DEFAULT_LIMIT,
        clock: Callable[[], int] = time.monotonic_ns,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._limit = DEFAULT_LIMIT
        self._calls = 0
        self._epoch = clock()
        self.set_limit(limit)

    @property
    def limit(self) -> float:
        return self._limit

    @property
    def calls(self) -> int:
        """Calls recorded since the last pacing point."""
        return self._calls

    def set_limit(self, calls_per_second: Any) -> float:
        limit = to_float(calls_per_second, default=0.0)
        if limit <= 0.0:
            raise ValidationError(f"unrecognized limit: {calls_per_second}")
        with self._lock:
            self._limit = limit
        return limit

    def record_call(self) -> None:
        with self._lock:
            self._calls += 1

    def auto_sleep(self) -> float:
        """Block until the recorded calls fit the ceiling. Returns seconds slept."""
        with self._lock:
            now = self._clock()
            interval = 1e9 / self._limit * self._calls - (now - self._epoch)
            wait_ns = int(interval) if interval > 0 else 0
            self._calls = 0
            self._epoch = now + wait_ns
        if wait_ns > 0:
            logger.debug("pacing: sleeping %.3fs", wait_ns / 1e9)
            self._sleep(wait_ns / 1e9)
        return wait_ns / 1e9
