"""Read-only collection access used by the analytics engine.

The engine only needs three capabilities from storage:

- full collection scan
- indexed equality + range scan with ordering and a ``first()`` / ``limit``
  short-circuit
- batched point lookups by primary key

``CollectionReader`` provides them over an ``AsyncSession``. Every call runs a
single bounded statement; errors from the driver propagate to the caller.
"""

import logging
from typing import Any, Iterable, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from phonedesk.db.models import Base

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class RangeQuery:
    """Equality + range scan over one model.

    Equality conditions are applied first, then range bounds. Results are
    ordered by the field passed to ``order()``, else the range field, else the
    first equality field, and then by primary key so equal keys come back in a
    stable order.
    """

    def __init__(self, db: AsyncSession, model: type[ModelT]):
        self._db = db
        self._model = model
        self._conditions: list[Any] = []
        self._order_field: Optional[str] = None
        self._explicit_order: Optional[str] = None
        self._descending = False
        self._limit: Optional[int] = None

    def _column(self, field: str):
        try:
            return getattr(self._model, field)
        except AttributeError:
            raise ValueError(f"{self._model.__name__} has no field '{field}'") from None

    def eq(self, field: str, value: Any) -> "RangeQuery":
        column = self._column(field)
        self._conditions.append(column.is_(None) if value is None else column == value)
        if self._order_field is None:
            self._order_field = field
        return self

    def gte(self, field: str, value: Any) -> "RangeQuery":
        self._conditions.append(self._column(field) >= value)
        self._order_field = field
        return self

    def gt(self, field: str, value: Any) -> "RangeQuery":
        self._conditions.append(self._column(field) > value)
        self._order_field = field
        return self

    def lt(self, field: str, value: Any) -> "RangeQuery":
        self._conditions.append(self._column(field) < value)
        self._order_field = field
        return self

    def lte(self, field: str, value: Any) -> "RangeQuery":
        self._conditions.append(self._column(field) <= value)
        self._order_field = field
        return self

    def order(self, direction: str = "asc", field: Optional[str] = None) -> "RangeQuery":
        """Set the sort direction, and optionally the field to sort by."""
        if direction not in ("asc", "desc"):
            raise ValueError(f"Invalid order direction '{direction}'")
        if field is not None:
            self._column(field)
            self._explicit_order = field
        self._descending = direction == "desc"
        return self

    def limit(self, count: int) -> "RangeQuery":
        self._limit = count
        return self

    def _statement(self):
        stmt = select(self._model).where(*self._conditions)
        pk = self._model.id
        order_field = self._explicit_order or self._order_field
        if order_field is not None:
            column = self._column(order_field)
            if self._descending:
                stmt = stmt.order_by(column.desc(), pk.desc())
            else:
                stmt = stmt.order_by(column.asc(), pk.asc())
        else:
            stmt = stmt.order_by(pk.desc() if self._descending else pk.asc())
        if self._limit is not None:
            stmt = stmt.limit(self._limit)
        return stmt

    async def collect(self) -> list:
        result = await self._db.execute(self._statement())
        return list(result.scalars().all())

    async def first(self):
        self._limit = 1
        result = await self._db.execute(self._statement())
        return result.scalars().first()


class CollectionReader:
    """Collection-level reads over an async session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def scan(self, model: type[ModelT]) -> list[ModelT]:
        """Return every row of a collection."""
        result = await self.db.execute(select(model).order_by(model.id.asc()))
        rows = list(result.scalars().all())
        logger.debug(f"Scanned {len(rows)} rows from {model.__tablename__}")
        return rows

    def query(self, model: type[ModelT]) -> RangeQuery:
        """Start an indexed equality/range scan."""
        return RangeQuery(self.db, model)

    async def get(self, model: type[ModelT], key: int) -> Optional[ModelT]:
        """Point lookup by primary key."""
        return await self.db.get(model, key)

    async def get_many(self, model: type[ModelT], keys: Iterable[int]) -> dict[int, ModelT]:
        """Batched point lookup. Missing keys are absent from the result."""
        unique_keys = sorted(set(keys))
        if not unique_keys:
            return {}
        result = await self.db.execute(select(model).where(model.id.in_(unique_keys)))
        return {row.id: row for row in result.scalars().all()}
