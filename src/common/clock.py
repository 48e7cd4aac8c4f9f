# ABOUTME: Injectable wall-clock used by every trailing-window calculation.
# ABOUTME: Keeps recency and projection logic deterministic under test.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

import pandas as pd

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def fixed_clock(moment: datetime) -> Clock:
    """Return a clock frozen at ``moment`` (naive values are read as UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)

    def _now() -> datetime:
        return moment

    return _now


def now_timestamp(clock: Clock) -> pd.Timestamp:
    """Current time from ``clock`` as a tz-aware UTC pandas Timestamp."""
    ts = pd.Timestamp(clock())
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")
