"""Conversions between absolute server-clock deadlines and stored remaining durations.

The server clock restarts at zero with every process, so deadlines are persisted
as the time still remaining and re-based against the clock on load.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime, timezone


def to_stored_remaining(deadline: float, now: float) -> float:
    return max(float(deadline) - float(now), 0.0)


def to_deadline(stored_remaining: float, now: float) -> float:
    return float(stored_remaining) + float(now)


def make_server_clock() -> Callable[[], float]:
    started = time.monotonic()

    def _elapsed() -> float:
        return time.monotonic() - started

    return _elapsed


def utc_now() -> datetime:
    # DATETIME columns hold naive UTC values
    return datetime.now(timezone.utc).replace(tzinfo=None)
