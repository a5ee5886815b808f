from __future__ import annotations

from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import ColumnElement, delete as sa_delete, func, select, update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.inspection import inspect as sa_inspect

T = TypeVar("T")  # SQLAlchemy model class (Declarative)


class BaseRepository(Generic[T]):
    """
    Shared async repository for a single declarative model.
    - Filters are equality-only keyword arguments (``filter_by``).
    - Commit/rollback is left to the caller (service layer).
    """

    def __init__(self, model: type[T]) -> None:
        self.model = model

    # ------------------------ Read ------------------------

    async def get(self, session: AsyncSession, pk: Any) -> T | None:
        """Fetch by primary key."""
        return await session.get(self.model, pk)

    async def find_one(self, session: AsyncSession, **filters: Any) -> T | None:
        """First row matching every filter, re-populated from the database."""
        stmt = (
            select(self.model)
            .filter_by(**filters)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        res = await session.execute(stmt)
        return res.scalars().first()

    async def count(self, session: AsyncSession, **filters: Any) -> int:
        stmt = select(func.count()).select_from(self.model)
        if filters:
            stmt = stmt.filter_by(**filters)
        res = await session.execute(stmt)
        return int(res.scalar_one())

    async def list(
        self,
        session: AsyncSession,
        *,
        where: dict[str, Any] | None = None,
        order_by: Sequence[ColumnElement] | None = None,
        limit: int | None = 100,
        offset: int | None = 0,
    ) -> list[T]:
        """Offset/limit page of rows."""
        stmt = select(self.model)
        if where:
            stmt = stmt.filter_by(**where)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        res = await session.execute(stmt)
        return list(res.scalars().all())

    # ------------------------ Write ------------------------

    async def create(self, session: AsyncSession, obj: T) -> T:
        """
        Insert a new instance (add + flush) so its primary key and defaults are populated.
        Only transient instances are accepted.
        """
        if not sa_inspect(obj).transient:
            raise ValueError("create(): expected a transient (new) SQLAlchemy model instance")
        session.add(obj)
        await session.flush()
        return obj

    async def update_where(
        self,
        session: AsyncSession,
        values: dict[str, Any],
        **filters: Any,
    ) -> int:
        """
        One ``UPDATE ... SET`` over the rows matching ``filters``.
        - Only the columns named in ``values`` are written (plus column ``onupdate`` defaults).
        - Returns the affected row count.
        """
        if not values:
            raise ValueError("update_where(): 'values' must not be empty")
        if not filters:
            raise ValueError("update_where(): refusing to update without filters")
        stmt = (
            sa_update(self.model)
            .filter_by(**filters)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        res = await session.execute(stmt)
        return res.rowcount or 0

    async def delete_where(self, session: AsyncSession, **filters: Any) -> int:
        """One ``DELETE`` over the rows matching ``filters``; returns the row count."""
        if not filters:
            raise ValueError("delete_where(): refusing to delete without filters")
        stmt = (
            sa_delete(self.model)
            .filter_by(**filters)
            .execution_options(synchronize_session=False)
        )
        res = await session.execute(stmt)
        return res.rowcount or 0
