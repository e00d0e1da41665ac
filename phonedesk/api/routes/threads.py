"""Read-only thread listing with engagement categories."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from phonedesk.analytics.engagement import EngagementSignals, classify_category
from phonedesk.analytics.kpi import is_awaiting_reply
from phonedesk.api.deps import get_database, get_now
from phonedesk.db.models import Thread

router = APIRouter(prefix="/api/threads", tags=["threads"])


class ThreadResponse(BaseModel):
    id: int
    customer_name: str
    status: str
    unread_count: int
    last_message_at: int | None
    last_message_preview: str | None
    awaiting_reply: bool
    category: str


@router.get("", response_model=List[ThreadResponse])
async def list_threads(
    db: AsyncSession = Depends(get_database),
    now: int = Depends(get_now),
    status: Optional[str] = Query(None, pattern="^(new|seen|done)$"),
    category: Optional[str] = Query(None, pattern="^(hot|warm|cold)$"),
    limit: int = Query(100, ge=1, le=500),
):
    """List threads, most recent activity first."""
    query = select(Thread).order_by(
        func.coalesce(Thread.last_message_at, Thread.created_at).desc(), Thread.id.desc()
    )
    if status:
        query = query.where(Thread.status == status)

    result = await db.execute(query)

    threads = []
    for thread in result.scalars().all():
        thread_category = classify_category(EngagementSignals.from_thread(thread), now).value
        if category and thread_category != category:
            continue
        name = thread.customer_first_name
        if thread.customer_last_name:
            name = f"{name} {thread.customer_last_name}"
        threads.append(
            ThreadResponse(
                id=thread.id,
                customer_name=name,
                status=thread.status,
                unread_count=thread.unread_count,
                last_message_at=thread.last_message_at,
                last_message_preview=thread.last_message_preview,
                awaiting_reply=is_awaiting_reply(thread),
                category=thread_category,
            )
        )
        if len(threads) >= limit:
            break

    return threads
