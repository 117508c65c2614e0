"""Generic SQLAlchemy Repository — find/count/create/update/delete over one model.

Invariants:
    - All repositories in a request share one AsyncSession (one unit of work)
    - Repositories flush, never commit: the service decides the transaction boundary
    - Bulk UPDATE/DELETE use synchronize_session="fetch" so identity-map objects
      reflect the write inside the same session
    - order_by entries are column names; a leading "-" means descending

Design Decisions:
    - Filters are a flat {column: value} dict; list/tuple/set values become IN,
      None becomes IS NULL — enough for every query the services issue
"""

from typing import Any, Generic, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)

_SYNC = {"synchronize_session": "fetch"}


class SqlRepository(Generic[ModelT]):
    """Shared CRUD surface; subclasses set `model`."""

    model: type[ModelT]
    # Relationship collections set to [] on create so they never lazy-load
    collections: tuple[str, ...] = ()

    def __init__(self, db: AsyncSession):
        self.db = db

    def _column(self, name: str):
        column = getattr(self.model, name, None)
        if column is None:
            raise ValueError(f"{self.model.__name__} has no column '{name}'")
        return column

    def _apply_filters(self, query, filters: dict[str, Any] | None):
        for name, value in (filters or {}).items():
            column = self._column(name)
            if isinstance(value, (list, tuple, set, frozenset)):
                query = query.where(column.in_(list(value)))
            elif value is None:
                query = query.where(column.is_(None))
            else:
                query = query.where(column == value)
        return query

    def _apply_order(self, query: Select, order_by: Sequence[str]) -> Select:
        for key in order_by:
            if key.startswith("-"):
                query = query.order_by(self._column(key[1:]).desc())
            else:
                query = query.order_by(self._column(key).asc())
        return query

    async def get_by_id(self, entity_id: UUID) -> ModelT | None:
        return await self.db.get(self.model, entity_id, populate_existing=True)

    async def find(
        self,
        filters: dict[str, Any] | None = None,
        order_by: Sequence[str] = (),
        skip: int = 0,
        limit: int | None = None,
    ) -> list[ModelT]:
        query = self._apply_filters(select(self.model), filters)
        query = self._apply_order(query, order_by)
        if skip:
            query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count(self, filters: dict[str, Any] | None = None) -> int:
        query = self._apply_filters(
            select(func.count()).select_from(self.model), filters,
        )
        result = await self.db.execute(query)
        return int(result.scalar_one())

    async def create(self, data: dict[str, Any]) -> ModelT:
        entity = self.model(**{name: [] for name in self.collections}, **data)
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def update(self, entity_id: UUID, changes: dict[str, Any]) -> bool:
        if not changes:
            return await self.get_by_id(entity_id) is not None
        result = await self.db.execute(
            update(self.model)
            .where(self._column("id") == entity_id)
            .values(**changes)
            .execution_options(**_SYNC),
        )
        return result.rowcount > 0

    async def delete(self, entity_id: UUID) -> bool:
        result = await self.db.execute(
            delete(self.model)
            .where(self._column("id") == entity_id)
            .execution_options(**_SYNC),
        )
        return result.rowcount > 0
