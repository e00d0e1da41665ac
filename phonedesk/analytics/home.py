"""Home dashboard computation."""

import logging
from dataclasses import dataclass

from phonedesk.analytics.alerts import Alert, AlertBundle, build_alert_bundle, evaluate_alerts
from phonedesk.analytics.kpi import DayPair, HomeKpis, KpiAggregator
from phonedesk.analytics.reply_time import MedianReplyTimeEstimator, reply_speed_tier
from phonedesk.analytics.windows import TimeWindows, resolve_windows
from phonedesk.db.models import Exchange, Product
from phonedesk.db.reader import CollectionReader

logger = logging.getLogger(__name__)


@dataclass
class HomeMetrics:
    """Everything the home dashboard shows, valid for one computation."""

    generated_at: int
    today_start: int
    kpis: HomeKpis
    median_reply: DayPair
    alert_bundle: AlertBundle
    alerts: list[Alert]

    def to_dict(self) -> dict:
        def pair(p: DayPair) -> dict:
            return {"today": p.today, "yesterday": p.yesterday, "delta": p.delta, "pct": p.pct}

        return {
            "generated_at": self.generated_at,
            "today_start": self.today_start,
            "replies_waiting_15m": pair(self.kpis.replies_waiting),
            "first_time": pair(self.kpis.first_time),
            "median_reply_minutes": {
                **pair(self.median_reply),
                "tier_today": reply_speed_tier(self.median_reply.today).value,
                "tier_yesterday": reply_speed_tier(self.median_reply.yesterday).value,
            },
            "phones_sold": pair(self.kpis.phones_sold),
            "follow_up_pending": self.kpis.follow_up_pending,
            "alert_bundle": self.alert_bundle.to_dict(),
            "alerts": [a.to_dict() for a in self.alerts],
        }


async def count_low_stock(reader: CollectionReader) -> int:
    """Active products at or below their own threshold. No threshold, no alert."""
    products = await reader.query(Product).eq("is_archived", False).collect()
    return sum(
        1
        for p in products
        if p.low_stock_threshold is not None and p.stock_quantity <= p.low_stock_threshold
    )


async def count_stale_quotes(reader: CollectionReader, windows: TimeWindows) -> int:
    quoted = await reader.query(Exchange).eq("status", "Quoted").collect()
    return sum(1 for e in quoted if e.quoted_at is not None and e.quoted_at < windows.cutoff_48h)


async def compute_home_metrics(reader: CollectionReader, now: int) -> HomeMetrics:
    """Compute KPIs, median reply times and alerts for the instant ``now``."""
    windows = resolve_windows(now)

    kpis = await KpiAggregator(reader).compute(windows)

    estimator = MedianReplyTimeEstimator(reader)
    median_reply = DayPair(
        today=await estimator.median_minutes(windows.today_start, windows.now),
        yesterday=await estimator.median_minutes(windows.yesterday_start, windows.today_start),
    )

    bundle = build_alert_bundle(
        kpis,
        median_today=median_reply.today,
        median_yesterday=median_reply.yesterday,
        low_stock=await count_low_stock(reader),
        quotes_48h=await count_stale_quotes(reader, windows),
    )
    alerts = evaluate_alerts(bundle)

    logger.info(
        f"Home metrics: waiting={kpis.replies_waiting.today} "
        f"median={median_reply.today}m alerts={[a.kind.value for a in alerts]}"
    )
    return HomeMetrics(
        generated_at=now,
        today_start=windows.today_start,
        kpis=kpis,
        median_reply=median_reply,
        alert_bundle=bundle,
        alerts=alerts,
    )
