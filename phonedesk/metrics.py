"""Prometheus metrics for phonedesk."""

from prometheus_client import Counter, Histogram, Info

# Application info
app_info = Info("phonedesk", "phonedesk application info")
app_info.info({"version": "0.1.0", "name": "phonedesk"})

# Dashboard computations
dashboard_computations_total = Counter(
    "dashboard_computations_total",
    "Total number of dashboard metric computations",
    ["view", "status"],
)

dashboard_computation_duration_seconds = Histogram(
    "dashboard_computation_duration_seconds",
    "Time spent computing dashboard metrics",
    ["view"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

dashboard_alerts_fired_total = Counter(
    "dashboard_alerts_fired_total",
    "Alerts produced by dashboard evaluations",
    ["kind"],
)

# Demand ingestion
demand_events_logged_total = Counter(
    "demand_events_logged_total",
    "Demand events persisted",
    ["source"],
)

demand_events_deduplicated_total = Counter(
    "demand_events_deduplicated_total",
    "Bot demand events skipped because one was already recorded today",
)


def record_dashboard_computation(view: str, status: str, duration: float) -> None:
    """Record a dashboard computation."""
    dashboard_computations_total.labels(view=view, status=status).inc()
    dashboard_computation_duration_seconds.labels(view=view).observe(duration)


def record_alert(kind: str) -> None:
    """Record a fired dashboard alert."""
    dashboard_alerts_fired_total.labels(kind=kind).inc()


def record_demand_event(source: str, deduplicated: bool = False) -> None:
    """Record a demand event ingestion outcome."""
    if deduplicated:
        demand_events_deduplicated_total.inc()
    else:
        demand_events_logged_total.labels(source=source).inc()
