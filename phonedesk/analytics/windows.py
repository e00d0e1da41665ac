"""Business-day boundaries and relative cutoffs.

Everything here works on epoch milliseconds. The business day starts at
midnight in a fixed UTC offset, independent of the server's local timezone.
"""

import time
from dataclasses import dataclass

from phonedesk.config import settings

MINUTE_MS = 60_000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS


def current_time_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def business_offset_ms() -> int:
    return settings.business_utc_offset_hours * HOUR_MS


@dataclass(frozen=True)
class DayBoundaries:
    """Start instants of the current and previous business day."""

    today_start: int
    yesterday_start: int


@dataclass(frozen=True)
class TimeWindows:
    """All boundaries a dashboard computation needs, resolved from one ``now``."""

    now: int
    today_start: int
    yesterday_start: int
    cutoff_15m: int
    cutoff_30m: int
    cutoff_12h: int
    cutoff_48h: int
    cutoff_7d: int
    cutoff_30d: int

    @property
    def business_day_index(self) -> int:
        """Number of whole business days since the epoch."""
        return business_day_index(self.today_start)


def business_day_boundaries(now: int, offset_ms: int | None = None) -> DayBoundaries:
    """Return the business-day midnight for ``now`` and the one before it."""
    if offset_ms is None:
        offset_ms = business_offset_ms()
    shifted = now + offset_ms
    local_midnight = shifted - (shifted % DAY_MS)
    today_start = local_midnight - offset_ms
    return DayBoundaries(today_start=today_start, yesterday_start=today_start - DAY_MS)


def cutoff(now: int, *, minutes: int = 0, hours: int = 0, days: int = 0) -> int:
    """``now`` minus the given span."""
    return now - (minutes * MINUTE_MS + hours * HOUR_MS + days * DAY_MS)


def resolve_windows(now: int) -> TimeWindows:
    """Resolve day boundaries and the standard relative cutoffs for ``now``."""
    days = business_day_boundaries(now)
    return TimeWindows(
        now=now,
        today_start=days.today_start,
        yesterday_start=days.yesterday_start,
        cutoff_15m=cutoff(now, minutes=settings.waiting_reply_minutes),
        cutoff_30m=cutoff(now, minutes=settings.alert_waiting_minutes),
        cutoff_12h=cutoff(now, hours=settings.follow_up_hours),
        cutoff_48h=cutoff(now, hours=settings.alert_quote_stale_hours),
        cutoff_7d=cutoff(now, days=settings.demand_window_days),
        cutoff_30d=cutoff(now, days=30),
    )


def business_day_index(now: int) -> int:
    """Number of whole business days between the epoch and ``now``."""
    return (now + business_offset_ms()) // DAY_MS
