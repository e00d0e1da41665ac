"""Demand event ingestion.

Callers:
  - Telegram bot: source="bot" when a customer asks about a phone type
  - Mini app search: source="search" when a customer searches a phone type
  - Mini app selection: source="select" when a customer submits an exchange form
"""

import logging
import re
from dataclasses import dataclass
from typing import NewType, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from phonedesk import metrics
from phonedesk.analytics.windows import business_day_index
from phonedesk.db.models import DemandEvent
from phonedesk.db.reader import CollectionReader

logger = logging.getLogger(__name__)

# Normalized phone type. Only ``normalize_phone_type`` produces these, so two
# keys compare equal exactly when the raw inputs differ only in case/spacing.
PhoneType = NewType("PhoneType", str)

DEMAND_SOURCES = ("bot", "search", "select")

# Width of the phone_type column
PHONE_TYPE_MAX_LENGTH = 80

_WHITESPACE_RE = re.compile(r"\s+")
_ALLOWED_CHARS_RE = re.compile(r"^[A-Za-z0-9+\-/() ]+$")
_ALPHANUMERIC_RE = re.compile(r"[A-Za-z0-9]")


class InvalidDemandEventError(ValueError):
    """Raised when a demand event fails validation."""

    pass


def normalize_phone_type(raw: str) -> PhoneType:
    """Trim, collapse runs of whitespace, lowercase."""
    return PhoneType(_WHITESPACE_RE.sub(" ", raw.strip()).lower())


def validate_phone_type(raw: str) -> tuple[bool, Optional[str]]:
    """
    Validate a phone type typed into a form.

    Returns:
        Tuple of (valid: bool, error: str | None)
    """
    value = _WHITESPACE_RE.sub(" ", raw.strip())
    if not value:
        return False, "Phone type is required"
    if len(value) < 3:
        return False, "Phone type must be at least 3 characters"
    if len(value) > PHONE_TYPE_MAX_LENGTH:
        return False, f"Phone type must not exceed {PHONE_TYPE_MAX_LENGTH} characters"
    if not _ALLOWED_CHARS_RE.match(value):
        return False, "Phone type contains invalid characters"
    if not _ALPHANUMERIC_RE.search(value):
        return False, "Phone type must contain at least one letter or number"
    return True, None


@dataclass
class LoggedDemandEvent:
    """Outcome of a ``log_demand_event`` call."""

    id: int
    created: bool


async def find_daily_bot_event(
    db: AsyncSession, thread_id: int, phone_type: PhoneType, business_day: int
) -> Optional[DemandEvent]:
    """The bot event already recorded for this thread and phone type on ``business_day``."""
    return await (
        CollectionReader(db)
        .query(DemandEvent)
        .eq("phone_type", phone_type)
        .eq("source", "bot")
        .eq("thread_id", thread_id)
        .eq("business_day", business_day)
        .first()
    )


def _duplicate(source: str, phone_type: PhoneType, thread_id: int, existing: DemandEvent) -> LoggedDemandEvent:
    logger.info(
        f"Bot demand for '{phone_type}' already recorded today "
        f"for thread {thread_id} (event {existing.id})"
    )
    metrics.record_demand_event(source, deduplicated=True)
    return LoggedDemandEvent(id=existing.id, created=False)


async def log_demand_event(
    db: AsyncSession,
    *,
    source: str,
    phone_type: str,
    now: int,
    user_id: Optional[str] = None,
    thread_id: Optional[int] = None,
    meta: Optional[str] = None,
) -> LoggedDemandEvent:
    """
    Persist a demand event.

    A bot event tied to a thread is recorded at most once per
    (thread, phone type) per business day; repeats return the existing id.
    The unique index on ``business_day`` settles concurrent repeats: the
    losing insert is rolled back and the winner's id returned.

    Raises:
        InvalidDemandEventError: unknown source, empty or over-long phone type
    """
    if source not in DEMAND_SOURCES:
        raise InvalidDemandEventError(f"Invalid source '{source}'")

    normalized = normalize_phone_type(phone_type)
    if not normalized:
        raise InvalidDemandEventError("phone_type must be non-empty")
    if len(normalized) > PHONE_TYPE_MAX_LENGTH:
        raise InvalidDemandEventError(
            f"phone_type must not exceed {PHONE_TYPE_MAX_LENGTH} characters"
        )

    business_day = None
    if source == "bot" and thread_id is not None:
        business_day = business_day_index(now)
        existing = await find_daily_bot_event(db, thread_id, normalized, business_day)
        if existing is not None:
            return _duplicate(source, normalized, thread_id, existing)

    event = DemandEvent(
        source=source,
        phone_type=normalized,
        created_at=now,
        user_id=user_id,
        thread_id=thread_id,
        meta=meta,
        business_day=business_day,
    )
    db.add(event)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        if business_day is None:
            raise
        existing = await find_daily_bot_event(db, thread_id, normalized, business_day)
        if existing is None:
            raise
        return _duplicate(source, normalized, thread_id, existing)
    await db.refresh(event)

    metrics.record_demand_event(source)
    logger.debug(f"Logged {source} demand event {event.id} for '{normalized}'")
    return LoggedDemandEvent(id=event.id, created=True)
