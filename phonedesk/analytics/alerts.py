"""Threshold alerts for the home dashboard."""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional

from phonedesk.analytics.kpi import HomeKpis
from phonedesk.config import settings


class AlertKind(str, Enum):
    """Alert rules, in display priority order."""

    WAITING_REPLIES = "waiting_replies"      # threads waiting > 30 min
    UNANSWERED_TODAY = "unanswered_today"    # new customers with no reply yet
    STALE_QUOTES = "stale_quotes"            # quotes open > 48h
    SLOW_REPLIES = "slow_replies"            # median reply > 1.3x yesterday
    LOW_STOCK = "low_stock"                  # stock <= low-stock threshold
    NEW_CUSTOMER_SPIKE = "new_customer_spike"


class AlertSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


ALERT_PRIORITY = list(AlertKind)

ALERT_SEVERITY = {
    AlertKind.WAITING_REPLIES: AlertSeverity.CRITICAL,
    AlertKind.UNANSWERED_TODAY: AlertSeverity.CRITICAL,
    AlertKind.STALE_QUOTES: AlertSeverity.WARNING,
    AlertKind.SLOW_REPLIES: AlertSeverity.WARNING,
    AlertKind.LOW_STOCK: AlertSeverity.WARNING,
    AlertKind.NEW_CUSTOMER_SPIKE: AlertSeverity.INFO,
}


@dataclass
class AlertBundle:
    """Raw numbers behind the alert rules."""

    waiting_30m: int
    low_stock: int
    reply_slow_ratio: Optional[float]
    unanswered_today: int
    quotes_48h: int
    new_customer_today: int
    new_customer_delta: int
    new_customer_pct: Optional[int]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Alert:
    """One fired alert."""

    kind: AlertKind
    severity: AlertSeverity
    value: float
    message: str

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "value": self.value,
            "message": self.message,
        }


def reply_slow_ratio(median_today: int, median_yesterday: int) -> Optional[float]:
    """Today's median over yesterday's; None unless both are positive."""
    if median_today > 0 and median_yesterday > 0:
        return median_today / median_yesterday
    return None


def build_alert_bundle(
    kpis: HomeKpis,
    median_today: int,
    median_yesterday: int,
    low_stock: int,
    quotes_48h: int,
) -> AlertBundle:
    return AlertBundle(
        waiting_30m=kpis.waiting_30m,
        low_stock=low_stock,
        reply_slow_ratio=reply_slow_ratio(median_today, median_yesterday),
        unanswered_today=kpis.unanswered_today,
        quotes_48h=quotes_48h,
        new_customer_today=kpis.first_time.today,
        new_customer_delta=kpis.first_time.delta,
        new_customer_pct=kpis.first_time.pct,
    )


def _plural(count: int, singular: str, plural: str | None = None) -> str:
    word = singular if count == 1 else (plural or singular + "s")
    return f"{count} {word}"


def check_rule(kind: AlertKind, bundle: AlertBundle) -> tuple[bool, str]:
    """
    Check a single alert rule against the bundle.

    Returns:
        Tuple of (triggered: bool, message: str)
    """
    if kind == AlertKind.WAITING_REPLIES:
        if bundle.waiting_30m > 0:
            return True, (
                f"{_plural(bundle.waiting_30m, 'customer')} waiting over "
                f"{settings.alert_waiting_minutes} min for a reply"
            )

    elif kind == AlertKind.UNANSWERED_TODAY:
        if bundle.unanswered_today > 0:
            return True, (
                f"{_plural(bundle.unanswered_today, 'new customer')} today "
                "still without a reply"
            )

    elif kind == AlertKind.STALE_QUOTES:
        if bundle.quotes_48h > 0:
            return True, (
                f"{_plural(bundle.quotes_48h, 'quote')} open for more than "
                f"{settings.alert_quote_stale_hours}h"
            )

    elif kind == AlertKind.SLOW_REPLIES:
        ratio = bundle.reply_slow_ratio
        if ratio is not None and ratio > settings.alert_reply_slow_ratio:
            return True, f"Replies are {ratio:.1f}x slower than yesterday"

    elif kind == AlertKind.LOW_STOCK:
        if bundle.low_stock > 0:
            return True, f"{_plural(bundle.low_stock, 'product')} at or below low-stock level"

    elif kind == AlertKind.NEW_CUSTOMER_SPIKE:
        pct = bundle.new_customer_pct
        # Both conditions: a big relative jump on tiny volumes is noise
        if (
            pct is not None
            and pct > settings.alert_spike_min_pct
            and bundle.new_customer_delta >= settings.alert_spike_min_delta
        ):
            return True, (
                f"New customers up {pct}% "
                f"(+{bundle.new_customer_delta}, {bundle.new_customer_today} today)"
            )

    return False, "Rule not triggered"


def _alert_value(kind: AlertKind, bundle: AlertBundle) -> float:
    return {
        AlertKind.WAITING_REPLIES: bundle.waiting_30m,
        AlertKind.UNANSWERED_TODAY: bundle.unanswered_today,
        AlertKind.STALE_QUOTES: bundle.quotes_48h,
        AlertKind.SLOW_REPLIES: bundle.reply_slow_ratio or 0.0,
        AlertKind.LOW_STOCK: bundle.low_stock,
        AlertKind.NEW_CUSTOMER_SPIKE: bundle.new_customer_delta,
    }[kind]


def evaluate_alerts(bundle: AlertBundle) -> list[Alert]:
    """Run every rule and return the fired alerts in priority order."""
    alerts: list[Alert] = []
    for kind in ALERT_PRIORITY:
        triggered, message = check_rule(kind, bundle)
        if triggered:
            alerts.append(
                Alert(
                    kind=kind,
                    severity=ALERT_SEVERITY[kind],
                    value=_alert_value(kind, bundle),
                    message=message,
                )
            )
    return alerts
