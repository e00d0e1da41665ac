"""One-off data repairs."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from phonedesk.db.models import Message, Thread
from phonedesk.db.reader import CollectionReader

logger = logging.getLogger(__name__)


async def backfill_first_message_at(db: AsyncSession) -> dict[str, int]:
    """
    Set ``first_message_at`` on threads that predate it.

    Uses each thread's earliest customer message. Threads that already have
    the field, or have no customer message, are left alone, so the job can be
    re-run safely.

    Returns:
        Dict with ``updated`` and ``total`` thread counts
    """
    threads = await CollectionReader(db).scan(Thread)
    missing = [t for t in threads if t.first_message_at is None]

    updated = 0
    if missing:
        # Earliest customer message per thread in one grouped query
        result = await db.execute(
            select(Message.thread_id, func.min(Message.created_at))
            .where(Message.sender == "customer")
            .where(Message.thread_id.in_([t.id for t in missing]))
            .group_by(Message.thread_id)
        )
        earliest = dict(result.all())

        for thread in missing:
            first_at = earliest.get(thread.id)
            if first_at is not None:
                thread.first_message_at = first_at
                updated += 1

    if updated:
        await db.commit()

    logger.info(f"Backfilled first_message_at on {updated}/{len(threads)} threads")
    return {"updated": updated, "total": len(threads)}
