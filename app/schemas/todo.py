import math
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# sort expressions are restricted to these columns and directions
SORTABLE_COLUMNS = ("id", "title", "completed", "created_at", "updated_at")
SORT_DIRECTIONS = ("asc", "desc")
DEFAULT_SORT = "created_at desc"


class TodoCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field("", max_length=2000)
    completed: Optional[bool] = False

    @field_validator("description")
    @classmethod
    def null_description_is_empty(cls, v: Optional[str]) -> str:
        return v or ""

    @field_validator("completed")
    @classmethod
    def null_completed_is_false(cls, v: Optional[bool]) -> bool:
        return bool(v)


class TodoPatch(BaseModel):
    """Partial update. A field counts as supplied only if it was present in the request body."""

    title: str = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    completed: bool = Field(None)

    @field_validator("description")
    @classmethod
    def null_description_is_empty(cls, v: Optional[str]) -> str:
        return v or ""

    def changes(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}


class TodoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    completed: bool
    user_id: int
    created_at: datetime
    updated_at: datetime


class PageMeta(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, page_size: int, total: int) -> "PageMeta":
        return cls(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=total_pages(total, page_size),
        )


class TodoPage(BaseModel):
    items: list[TodoOut]
    meta: PageMeta


class SortSpec(BaseModel):
    column: Literal["id", "title", "completed", "created_at", "updated_at"]
    direction: Literal["asc", "desc"] = "asc"


def total_pages(total: int, page_size: int) -> int:
    if total <= 0:
        return 0
    return math.ceil(total / page_size)


def parse_sort(expr: str) -> Optional[SortSpec]:
    """Parse ``"<column> [asc|desc]"``; returns None when the expression is not allowed."""
    parts = expr.strip().lower().split()
    if not parts or len(parts) > 2:
        return None
    column = parts[0]
    direction = parts[1] if len(parts) == 2 else "asc"
    if column not in SORTABLE_COLUMNS or direction not in SORT_DIRECTIONS:
        return None
    return SortSpec(column=column, direction=direction)
