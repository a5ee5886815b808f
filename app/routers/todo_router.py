from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.database import get_db
from app.errors import BadRequestError
from app.schemas.common import DataResponse, DeletedOut
from app.schemas.todo import DEFAULT_SORT, TodoCreate, TodoOut, TodoPage, TodoPatch
from app.services.todo_service import TodoService

router = APIRouter(tags=["Todos"])

COMPLETED_FILTERS = {"true": True, "false": False}
MAX_PAGE_SIZE = 100
# keeps (page - 1) * page_size inside a signed 64-bit OFFSET
MAX_PAGE = (2**63 - 1) // MAX_PAGE_SIZE


def get_todo_service(settings: Settings = Depends(get_settings)) -> TodoService:
    return TodoService(settings)


@router.get("", response_model=DataResponse[TodoPage])
async def list_todos(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    page_size: int = Query(5, ge=1, le=MAX_PAGE_SIZE),
    sort: str = Query(DEFAULT_SORT),
    completed: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    service: TodoService = Depends(get_todo_service),
):
    completed_filter = None
    if completed is not None and completed != "":
        if completed not in COMPLETED_FILTERS:
            raise BadRequestError("invalid completed filter; must be true or false")
        completed_filter = COMPLETED_FILTERS[completed]
    result = await service.list_todos(
        db, page=page, page_size=page_size, sort=sort, completed=completed_filter
    )
    return {"data": result}


@router.post("", response_model=DataResponse[TodoOut], status_code=201)
async def create_todo(
    todo_in: TodoCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
    service: TodoService = Depends(get_todo_service),
):
    todo = await service.create_todo(db, todo_in)
    response.headers["Location"] = f"/api/todos/{todo.id}"
    return {"data": todo}


@router.get("/{todo_id}", response_model=DataResponse[TodoOut])
async def get_todo(
    todo_id: int,
    db: AsyncSession = Depends(get_db),
    service: TodoService = Depends(get_todo_service),
):
    return {"data": await service.get_todo(db, todo_id)}


@router.patch("/{todo_id}", response_model=DataResponse[TodoOut])
@router.put("/{todo_id}", response_model=DataResponse[TodoOut])
async def update_todo(
    todo_id: int,
    patch: TodoPatch,
    db: AsyncSession = Depends(get_db),
    service: TodoService = Depends(get_todo_service),
):
    return {"data": await service.update_todo(db, todo_id, patch)}


@router.delete("/{todo_id}", response_model=DataResponse[DeletedOut])
async def delete_todo(
    todo_id: int,
    db: AsyncSession = Depends(get_db),
    service: TodoService = Depends(get_todo_service),
):
    deleted_id = await service.delete_todo(db, todo_id)
    return {"data": {"message": "Todo successfully deleted", "id": deleted_id}}
