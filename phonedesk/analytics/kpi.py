"""Home dashboard KPIs: replies waiting, first-time customers, phones sold."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from phonedesk.analytics.reply_time import round_half_up
from phonedesk.analytics.windows import TimeWindows
from phonedesk.db.models import Exchange, Thread
from phonedesk.db.reader import CollectionReader

logger = logging.getLogger(__name__)

ACTIVE_THREAD_STATUSES = ("new", "seen")


def is_awaiting_reply(thread: Thread) -> bool:
    """Customer spoke last: no admin message yet, or the admin one is older."""
    if thread.last_customer_message_at is None:
        return False
    return (
        thread.last_admin_message_at is None
        or thread.last_customer_message_at > thread.last_admin_message_at
    )


def is_active(thread: Thread) -> bool:
    return thread.status in ACTIVE_THREAD_STATUSES


def in_window(value: Optional[int], start: int, end: Optional[int] = None) -> bool:
    """``value`` in ``[start, end)``; open-ended when ``end`` is None."""
    if value is None:
        return False
    if value < start:
        return False
    return end is None or value < end


def count_waiting_since(threads: Iterable[Thread], before: int) -> int:
    """Active threads awaiting a reply whose last customer message is older than ``before``."""
    return sum(
        1
        for t in threads
        if is_active(t) and is_awaiting_reply(t) and t.last_customer_message_at < before
    )


def count_waiting_in_window(threads: Iterable[Thread], start: int, end: int) -> int:
    """Threads (any status) awaiting a reply whose last customer message is in ``[start, end)``."""
    return sum(
        1
        for t in threads
        if is_awaiting_reply(t) and in_window(t.last_customer_message_at, start, end)
    )


def count_first_contacts(threads: Iterable[Thread], start: int, end: Optional[int] = None) -> int:
    """Threads whose first customer message falls in the window.

    Threads without ``first_message_at`` are excluded until backfilled.
    """
    return sum(1 for t in threads if in_window(t.first_message_at, start, end))


def count_unanswered_first_contacts(threads: Iterable[Thread], start: int) -> int:
    return sum(
        1
        for t in threads
        if in_window(t.first_message_at, start) and not t.has_admin_replied
    )


def count_completed_between(exchanges: Iterable[Exchange], start: int, end: Optional[int] = None) -> int:
    return sum(1 for e in exchanges if in_window(e.completed_at, start, end))


def pct_change(today: int, yesterday: int) -> Optional[int]:
    """Rounded percentage change; None when there is no baseline."""
    if yesterday <= 0:
        return None
    return round_half_up((today - yesterday) / yesterday * 100)


@dataclass
class DayPair:
    """A metric for today and the previous business day."""

    today: int
    yesterday: int

    @property
    def delta(self) -> int:
        return self.today - self.yesterday

    @property
    def pct(self) -> Optional[int]:
        return pct_change(self.today, self.yesterday)


@dataclass
class HomeKpis:
    """Raw KPI counts for the home dashboard."""

    replies_waiting: DayPair
    first_time: DayPair
    phones_sold: DayPair
    follow_up_pending: int
    waiting_30m: int
    unanswered_today: int


def compute_thread_kpis(threads: list[Thread], windows: TimeWindows) -> dict[str, object]:
    """Thread-derived counts for one snapshot."""
    return {
        "replies_waiting": DayPair(
            today=count_waiting_since(threads, windows.cutoff_15m),
            yesterday=count_waiting_in_window(
                threads, windows.yesterday_start, windows.today_start
            ),
        ),
        "first_time": DayPair(
            today=count_first_contacts(threads, windows.today_start, windows.now),
            yesterday=count_first_contacts(
                threads, windows.yesterday_start, windows.today_start
            ),
        ),
        "follow_up_pending": count_waiting_since(threads, windows.cutoff_12h),
        "waiting_30m": count_waiting_since(threads, windows.cutoff_30m),
        "unanswered_today": count_unanswered_first_contacts(threads, windows.today_start),
    }


class KpiAggregator:
    """Computes home KPIs from a full thread scan and indexed exchange scans."""

    def __init__(self, reader: CollectionReader):
        self.reader = reader

    async def compute(self, windows: TimeWindows) -> HomeKpis:
        threads = await self.reader.scan(Thread)
        completed = await (
            self.reader.query(Exchange)
            .eq("status", "Completed")
            .gte("completed_at", windows.yesterday_start)
            .collect()
        )

        thread_kpis = compute_thread_kpis(threads, windows)
        phones_sold = DayPair(
            today=count_completed_between(completed, windows.today_start),
            yesterday=count_completed_between(
                completed, windows.yesterday_start, windows.today_start
            ),
        )

        kpis = HomeKpis(phones_sold=phones_sold, **thread_kpis)
        logger.debug(
            f"KPIs over {len(threads)} threads: waiting={kpis.replies_waiting.today} "
            f"first_time={kpis.first_time.today} sold={phones_sold.today}"
        )
        return kpis
