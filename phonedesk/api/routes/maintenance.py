"""Maintenance routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from phonedesk.api.deps import get_database
from phonedesk.maintenance.backfill import backfill_first_message_at

router = APIRouter(prefix="/api/maintenance", tags=["maintenance"])


@router.post("/backfill-first-message")
async def run_first_message_backfill(db: AsyncSession = Depends(get_database)):
    """Fill in first_message_at on legacy threads."""
    return await backfill_first_message_at(db)
