"""Median reply-time estimation.

For a window ``[from, to)`` each thread contributes at most one latency
sample: the gap between its last customer message inside the window and the
first human admin reply strictly after it. Replies may land after the window
closes. Threads that were never answered contribute nothing, and every sample
is capped so multi-day gaps cannot dominate the median.
"""

import logging
import math
import statistics
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from phonedesk.analytics.windows import MINUTE_MS
from phonedesk.config import settings
from phonedesk.db.models import Message
from phonedesk.db.reader import CollectionReader

logger = logging.getLogger(__name__)


class SenderKind(str, Enum):
    """Who wrote a message."""

    CUSTOMER = "customer"
    HUMAN_ADMIN = "human_admin"
    BOT = "bot"


def sender_kind(sender: str, sender_role: Optional[str] = None) -> SenderKind:
    """Map the stored sender fields onto a closed set of authors.

    Admin rows written before ``sender_role`` existed have no role and were
    all typed by a person.
    """
    if sender == "customer":
        return SenderKind.CUSTOMER
    if sender_role == "bot":
        return SenderKind.BOT
    return SenderKind.HUMAN_ADMIN


class ReplySpeedTier(str, Enum):
    GOOD = "good"
    CAUTION = "caution"
    POOR = "poor"


def reply_speed_tier(minutes: int) -> ReplySpeedTier:
    if minutes <= settings.reply_tier_good_minutes:
        return ReplySpeedTier.GOOD
    if minutes <= settings.reply_tier_caution_minutes:
        return ReplySpeedTier.CAUTION
    return ReplySpeedTier.POOR


@dataclass(frozen=True)
class TimedMessage:
    """The parts of a message the estimator looks at."""

    thread_id: int
    created_at: int
    kind: SenderKind

    @classmethod
    def from_model(cls, message: Message) -> "TimedMessage":
        return cls(
            thread_id=message.thread_id,
            created_at=message.created_at,
            kind=sender_kind(message.sender, message.sender_role),
        )


def median_ms(samples: list[float]) -> float:
    """Median of the samples; 0 for an empty list."""
    if not samples:
        return 0
    return statistics.median(samples)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def last_customer_by_thread(
    customer_messages: Iterable[TimedMessage], window_from: int, window_to: int
) -> dict[int, int]:
    """Latest customer timestamp per thread within ``[window_from, window_to)``."""
    latest: dict[int, int] = {}
    for message in customer_messages:
        if message.kind is not SenderKind.CUSTOMER:
            continue
        if not window_from <= message.created_at < window_to:
            continue
        current = latest.get(message.thread_id)
        if current is None or message.created_at > current:
            latest[message.thread_id] = message.created_at
    return latest


def human_replies_by_thread(
    admin_messages: Iterable[TimedMessage], window_from: int
) -> dict[int, list[int]]:
    """Human admin reply times per thread, ascending, from ``window_from`` on."""
    grouped: dict[int, list[int]] = defaultdict(list)
    for message in admin_messages:
        if message.kind is not SenderKind.HUMAN_ADMIN:
            continue
        if message.created_at < window_from:
            continue
        grouped[message.thread_id].append(message.created_at)
    for times in grouped.values():
        times.sort()
    return dict(grouped)


def pair_reply_samples(
    last_customer: dict[int, int],
    replies: dict[int, list[int]],
    cap_ms: int | None = None,
) -> list[int]:
    """Build one capped latency sample per answered thread."""
    if cap_ms is None:
        cap_ms = settings.reply_sample_cap_minutes * MINUTE_MS

    samples: list[int] = []
    for thread_id, customer_at in last_customer.items():
        reply_times = replies.get(thread_id)
        if not reply_times:
            continue
        first_reply = next((t for t in reply_times if t > customer_at), None)
        if first_reply is None:
            continue
        samples.append(min(first_reply - customer_at, cap_ms))
    return samples


def median_reply_minutes(
    customer_messages: Iterable[TimedMessage],
    admin_messages: Iterable[TimedMessage],
    window_from: int,
    window_to: int,
) -> int:
    """Median reply time in whole minutes for one window (0 without samples)."""
    last_customer = last_customer_by_thread(customer_messages, window_from, window_to)
    if not last_customer:
        return 0
    replies = human_replies_by_thread(admin_messages, window_from)
    samples = pair_reply_samples(last_customer, replies)
    return round_half_up(median_ms(samples) / MINUTE_MS)


class MedianReplyTimeEstimator:
    """Reads a window's messages and computes its median reply time."""

    def __init__(self, reader: CollectionReader):
        self.reader = reader

    async def median_minutes(self, window_from: int, window_to: int) -> int:
        customer_rows = await (
            self.reader.query(Message)
            .eq("sender", "customer")
            .gte("created_at", window_from)
            .lt("created_at", window_to)
            .collect()
        )
        if not customer_rows:
            return 0

        # Unbounded above: a reply to a late message can land after the window
        admin_rows = await (
            self.reader.query(Message)
            .eq("sender", "admin")
            .gte("created_at", window_from)
            .collect()
        )

        minutes = median_reply_minutes(
            (TimedMessage.from_model(m) for m in customer_rows),
            (TimedMessage.from_model(m) for m in admin_rows),
            window_from,
            window_to,
        )
        logger.debug(
            f"Median reply for [{window_from}, {window_to}): {minutes} min "
            f"({len(customer_rows)} customer / {len(admin_rows)} admin messages)"
        )
        return minutes
