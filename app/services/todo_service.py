import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import bounded
from app.errors import BadRequestError, NotFoundError
from app.models.todo import Todo
from app.repositories.todo_repo import TodoRepository
from app.schemas.todo import PageMeta, TodoCreate, TodoOut, TodoPage, TodoPatch, parse_sort

logger = logging.getLogger(__name__)

TODO_NOT_FOUND = "todo not found or not authorized"
MAX_ROW_ID = 2**63 - 1


class TodoService:
    """Todo CRUD for the configured owner. Each call is bounded by ``settings.db_timeout``."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.repo = TodoRepository()

    @property
    def owner_id(self) -> int:
        return self.settings.owner_id

    @staticmethod
    def _require_row_id(todo_id: int) -> None:
        # ids no BIGINT column can hold are plain misses
        if not 1 <= todo_id <= MAX_ROW_ID:
            raise NotFoundError(TODO_NOT_FOUND)

    @bounded
    async def list_todos(
        self,
        db: AsyncSession,
        *,
        page: int = 1,
        page_size: int = 5,
        sort: str,
        completed: Optional[bool] = None,
    ) -> TodoPage:
        spec = parse_sort(sort)
        if spec is None:
            raise BadRequestError("invalid sort parameter")
        total, items = await self.repo.list_page(
            db,
            self.owner_id,
            completed=completed,
            sort=spec,
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        return TodoPage(
            items=[TodoOut.model_validate(t) for t in items],
            meta=PageMeta.build(page, page_size, total),
        )

    @bounded
    async def create_todo(self, db: AsyncSession, todo_in: TodoCreate) -> TodoOut:
        async with db.begin():
            todo = await self.repo.create(
                db,
                Todo(
                    title=todo_in.title,
                    description=todo_in.description,
                    completed=todo_in.completed,
                    user_id=self.owner_id,
                ),
            )
        # reload the row as stored
        await db.refresh(todo)
        logger.info("created todo id=%s owner=%s", todo.id, self.owner_id)
        return TodoOut.model_validate(todo)

    @bounded
    async def get_todo(self, db: AsyncSession, todo_id: int) -> TodoOut:
        self._require_row_id(todo_id)
        todo = await self.repo.get_owned(db, todo_id, self.owner_id)
        if todo is None:
            raise NotFoundError(TODO_NOT_FOUND)
        return TodoOut.model_validate(todo)

    @bounded
    async def update_todo(self, db: AsyncSession, todo_id: int, patch: TodoPatch) -> TodoOut:
        self._require_row_id(todo_id)
        if await self.repo.get_owned(db, todo_id, self.owner_id) is None:
            raise NotFoundError(TODO_NOT_FOUND)

        changes = patch.changes()
        if not changes:
            raise BadRequestError("no fields to update")

        updated = await self.repo.update_owned(db, todo_id, self.owner_id, changes)
        await db.commit()
        if not updated:
            raise NotFoundError(TODO_NOT_FOUND)
        logger.info("updated todo id=%s fields=%s", todo_id, sorted(changes))

        todo = await self.repo.get_owned(db, todo_id, self.owner_id)
        if todo is None:
            raise NotFoundError(TODO_NOT_FOUND)
        return TodoOut.model_validate(todo)

    @bounded
    async def delete_todo(self, db: AsyncSession, todo_id: int) -> int:
        self._require_row_id(todo_id)
        deleted = await self.repo.delete_owned(db, todo_id, self.owner_id)
        await db.commit()
        if not deleted:
            raise NotFoundError(TODO_NOT_FOUND)
        logger.info("deleted todo id=%s owner=%s", todo_id, self.owner_id)
        return todo_id
