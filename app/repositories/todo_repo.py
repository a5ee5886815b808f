from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.models.todo import Todo
from app.repositories.base import BaseRepository
from app.schemas.todo import SortSpec


class TodoRepository(BaseRepository[Todo]):
    """Todo access. Every query is scoped by the owning ``user_id``."""

    def __init__(self) -> None:
        super().__init__(Todo)

    async def list_page(
        self,
        db: AsyncSession,
        owner_id: int,
        *,
        completed: Optional[bool],
        sort: SortSpec,
        limit: int,
        offset: int,
    ) -> tuple[int, list[Todo]]:
        where: dict[str, Any] = {"user_id": owner_id}
        if completed is not None:
            where["completed"] = completed
        total = await self.count(db, **where)
        column = getattr(Todo, sort.column)
        if sort.direction == "desc":
            order_by = (column.desc(), Todo.id.desc())
        else:
            order_by = (column.asc(), Todo.id.asc())
        items = await self.list(db, where=where, order_by=order_by, limit=limit, offset=offset)
        return total, items

    async def get_owned(self, db: AsyncSession, todo_id: int, owner_id: int) -> Optional[Todo]:
        return await self.find_one(db, id=todo_id, user_id=owner_id)

    async def update_owned(self, db: AsyncSession, todo_id: int, owner_id: int, changes: dict[str, Any]) -> int:
        values = {**changes, "updated_at": utcnow()}
        return await self.update_where(db, values, id=todo_id, user_id=owner_id)

    async def delete_owned(self, db: AsyncSession, todo_id: int, owner_id: int) -> int:
        return await self.delete_where(db, id=todo_id, user_id=owner_id)
