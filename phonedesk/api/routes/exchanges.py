"""Read-only exchange listing with engagement categories."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from phonedesk.analytics.engagement import EngagementSignals, classify_category
from phonedesk.api.deps import get_database, get_now
from phonedesk.db.models import Exchange, Product, Thread
from phonedesk.db.reader import CollectionReader

router = APIRouter(prefix="/api/exchanges", tags=["exchanges"])


class ExchangeResponse(BaseModel):
    id: int
    thread_id: int
    status: str
    desired_phone_id: int
    desired_phone_type: str | None
    trade_in_model: str
    final_difference: float
    priority_value_etb: float
    created_at: int
    category: str


@router.get("", response_model=List[ExchangeResponse])
async def list_exchanges(
    db: AsyncSession = Depends(get_database),
    now: int = Depends(get_now),
    status: Optional[str] = Query(None, pattern="^(Pending|Quoted|Accepted|Completed|Rejected)$"),
    limit: int = Query(100, ge=1, le=500),
):
    """List exchanges, newest first."""
    reader = CollectionReader(db)
    query = reader.query(Exchange)
    if status:
        query = query.eq("status", status)
    exchanges = await query.order("desc", field="created_at").limit(limit).collect()

    # Join threads and desired phones with one batched lookup each
    threads = await reader.get_many(Thread, (e.thread_id for e in exchanges))
    products = await reader.get_many(Product, (e.desired_phone_id for e in exchanges))

    response = []
    for exchange in exchanges:
        product = products.get(exchange.desired_phone_id)
        signals = EngagementSignals.from_exchange(exchange, threads.get(exchange.thread_id))
        response.append(
            ExchangeResponse(
                id=exchange.id,
                thread_id=exchange.thread_id,
                status=exchange.status,
                desired_phone_id=exchange.desired_phone_id,
                desired_phone_type=product.phone_type if product else None,
                trade_in_model=exchange.trade_in_model,
                final_difference=exchange.final_difference,
                priority_value_etb=exchange.priority_value_etb,
                created_at=exchange.created_at,
                category=classify_category(signals, now).value,
            )
        )
    return response
