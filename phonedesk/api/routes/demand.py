"""Demand event logging routes."""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from phonedesk.api.deps import get_database, get_now
from phonedesk.ingest.demand_events import InvalidDemandEventError, log_demand_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/demand", tags=["demand"])


class DemandEventCreate(BaseModel):
    source: Literal["bot", "search", "select"]
    phone_type: str
    user_id: str | None = None
    thread_id: int | None = None
    meta: str | None = None


class DemandEventResponse(BaseModel):
    id: int
    created: bool


@router.post("/events", response_model=DemandEventResponse)
async def create_demand_event(
    event_data: DemandEventCreate,
    db: AsyncSession = Depends(get_database),
    now: int = Depends(get_now),
):
    """Record that a customer asked about, searched or selected a phone type."""
    try:
        logged = await log_demand_event(
            db,
            source=event_data.source,
            phone_type=event_data.phone_type,
            now=now,
            user_id=event_data.user_id,
            thread_id=event_data.thread_id,
            meta=event_data.meta,
        )
    except InvalidDemandEventError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return DemandEventResponse(id=logged.id, created=logged.created)
