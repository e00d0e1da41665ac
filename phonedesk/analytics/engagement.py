"""Hot / warm / cold engagement classification for threads and exchanges."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from phonedesk.analytics.windows import HOUR_MS
from phonedesk.config import settings
from phonedesk.db.models import Exchange, Thread


class EngagementCategory(str, Enum):
    """Derived urgency tier of a thread or exchange."""

    HOT = "hot"
    WARM = "warm"
    COLD = "cold"


@dataclass
class EngagementSignals:
    """Signals the classifier looks at. Absent signals count as not present."""

    created_at: int
    last_customer_message_at: Optional[int] = None
    last_customer_message_has_budget_keyword: bool = False
    priority_value_etb: Optional[float] = None
    clicked_continue: bool = False
    has_customer_messaged: bool = False
    has_admin_replied: bool = False

    @classmethod
    def from_thread(cls, thread: Thread) -> "EngagementSignals":
        return cls(
            created_at=thread.created_at,
            last_customer_message_at=thread.last_customer_message_at,
            last_customer_message_has_budget_keyword=bool(
                thread.last_customer_message_has_budget_keyword
            ),
            has_customer_messaged=bool(thread.has_customer_messaged),
            has_admin_replied=bool(thread.has_admin_replied),
        )

    @classmethod
    def from_exchange(cls, exchange: Exchange, thread: Thread | None = None) -> "EngagementSignals":
        """Exchange signals, enriched with its thread's message signals when given."""
        signals = cls(
            created_at=exchange.created_at,
            last_customer_message_has_budget_keyword=bool(
                exchange.budget_mentioned_in_submission
            ),
            priority_value_etb=exchange.priority_value_etb,
            clicked_continue=bool(exchange.clicked_continue),
        )
        if thread is not None:
            signals.last_customer_message_at = thread.last_customer_message_at
            signals.last_customer_message_has_budget_keyword = (
                signals.last_customer_message_has_budget_keyword
                or bool(thread.last_customer_message_has_budget_keyword)
            )
            signals.has_customer_messaged = bool(thread.has_customer_messaged)
            signals.has_admin_replied = bool(thread.has_admin_replied)
        return signals


def classify_category(signals: EngagementSignals, now: int) -> EngagementCategory:
    """
    Classify an entity as hot, warm or cold. First matching tier wins.

    Hot: customer wrote in the last 2h, mentioned a budget, or the deal is
    worth more than 50,000 ETB. Warm: any engagement at all. Cold: older than
    24h with no engagement. Young entities without signals default to warm.
    """
    recent_message = (
        signals.last_customer_message_at is not None
        and now - signals.last_customer_message_at < settings.hot_recent_hours * HOUR_MS
    )
    high_value = (
        signals.priority_value_etb is not None
        and signals.priority_value_etb > settings.hot_value_etb
    )
    if recent_message or signals.last_customer_message_has_budget_keyword or high_value:
        return EngagementCategory.HOT

    if signals.clicked_continue or signals.has_customer_messaged or signals.has_admin_replied:
        return EngagementCategory.WARM

    if now - signals.created_at > settings.cold_age_hours * HOUR_MS:
        return EngagementCategory.COLD

    return EngagementCategory.WARM
