"""Task Schemas — create, partial update, status move, bulk reorder and comments.

Invariants:
    - title 2-200 chars stripped; description <= 1000; at most 10 tags
    - TaskUpdate distinguishes omitted fields from explicit null via model_fields_set
    - Comment content is NOT trimmed here; the core trims and rejects blank content
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.core.domain_types import Priority, TaskStatus
from app.core.task_board import ReorderItem

MAX_TAGS = 10


def _strip_title(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if len(v) < 2:
        raise ValueError("title must be between 2 and 200 characters")
    return v


class TaskCreate(BaseModel):
    title: str = Field(min_length=2, max_length=200)
    description: str | None = Field(None, max_length=1000)
    priority: Priority = Priority.MEDIUM
    assigned_to_id: UUID | None = None
    due_date: datetime | None = None
    tags: list[str] = Field(default_factory=list, max_length=MAX_TAGS)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v):
        return _strip_title(v)


class TaskUpdate(BaseModel):
    title: str | None = Field(None, min_length=2, max_length=200)
    description: str | None = Field(None, max_length=1000)
    status: TaskStatus | None = None
    priority: Priority | None = None
    assigned_to_id: UUID | None = None
    due_date: datetime | None = None
    tags: list[str] | None = Field(None, max_length=MAX_TAGS)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v):
        return _strip_title(v)

    def changes(self) -> dict[str, Any]:
        """Only the fields the client sent, explicit nulls included."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class TaskStatusUpdate(BaseModel):
    status: TaskStatus
    position: int | None = Field(None, ge=0)


class ReorderItemIn(BaseModel):
    task_id: UUID
    position: int = Field(ge=0)
    status: TaskStatus | None = None

    def to_item(self) -> ReorderItem:
        return ReorderItem(self.task_id, self.position, self.status)


class TaskReorder(BaseModel):
    tasks: list[ReorderItemIn] = Field(min_length=1)


class CommentCreate(BaseModel):
    content: str
