"""Dashboard API endpoints for the UI."""

import logging
import time

from fastapi import APIRouter, Depends

from phonedesk import metrics
from phonedesk.analytics.demand import DemandSignalRanker
from phonedesk.analytics.home import compute_home_metrics
from phonedesk.analytics.windows import resolve_windows
from phonedesk.api.deps import get_now, get_reader
from phonedesk.db.reader import CollectionReader

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/home")
async def get_home_metrics(
    reader: CollectionReader = Depends(get_reader),
    now: int = Depends(get_now),
):
    """KPIs with day-over-day comparison, follow-ups and alerts."""
    start_time = time.perf_counter()
    try:
        result = await compute_home_metrics(reader, now)
    except Exception:
        metrics.record_dashboard_computation("home", "error", time.perf_counter() - start_time)
        raise

    metrics.record_dashboard_computation("home", "success", time.perf_counter() - start_time)
    for alert in result.alerts:
        metrics.record_alert(alert.kind.value)
    return result.to_dict()


@router.get("/demand")
async def get_demand_metrics(
    reader: CollectionReader = Depends(get_reader),
    now: int = Depends(get_now),
):
    """Conversation volume, ranked demand, stock-outs and restock suggestions."""
    start_time = time.perf_counter()
    try:
        result = await DemandSignalRanker(reader).compute(resolve_windows(now))
    except Exception:
        metrics.record_dashboard_computation("demand", "error", time.perf_counter() - start_time)
        raise

    metrics.record_dashboard_computation("demand", "success", time.perf_counter() - start_time)
    return result.to_dict()
