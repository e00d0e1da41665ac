"""FastAPI dependencies."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from phonedesk.analytics.windows import current_time_ms
from phonedesk.db.reader import CollectionReader
from phonedesk.db.session import get_db


async def get_database() -> AsyncSession:
    """Dependency for database session."""
    async for session in get_db():
        yield session
        break  # Only yield once, as FastAPI handles the session lifecycle


async def get_reader(db: AsyncSession = Depends(get_database)) -> CollectionReader:
    """Dependency for read-only collection access."""
    return CollectionReader(db)


def get_now() -> int:
    """The instant a request is evaluated at, in epoch milliseconds."""
    return current_time_ms()
