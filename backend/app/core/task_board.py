"""Task Board Rules — positions, partial updates, comments, ordering and stats.

Invariants:
    - New task position = max position in project + 1, or 1 for an empty project
    - Reorders never renumber siblings; duplicate positions are legal
    - Board order: position ASC, then created_at DESC (board_sort_key)
    - Partial updates distinguish an omitted field (UNSET) from an explicit None
    - Comment content is stored trimmed and must be non-empty after trimming

Design Decisions:
    - UNSET sentinel instead of None-means-omitted: None is a valid clearing value
      for assignee, due date and description
    - Reorder results are per item (ReorderItemResult), never all-or-nothing
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping, Protocol
from uuid import UUID

from app.core.domain_types import TaskStatus
from app.core.errors import ValidationFailedError
from app.core.invitation_rules import as_utc


FIRST_POSITION: int = 1
COMMENT_MAX_LENGTH: int = 500

# Fields a partial update may touch; None is accepted only for the nullable ones
UPDATABLE_FIELDS: frozenset[str] = frozenset({
    "title", "description", "status", "priority",
    "assigned_to_id", "due_date", "tags",
})
NULLABLE_FIELDS: frozenset[str] = frozenset({
    "description", "assigned_to_id", "due_date",
})


class _Unset:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


class TaskLike(Protocol):
    id: UUID
    status: str
    position: int
    created_at: datetime


@dataclass(frozen=True)
class ReorderItem:
    task_id: UUID
    position: int
    status: TaskStatus | None = None


@dataclass(frozen=True)
class ReorderItemResult:
    task_id: UUID
    ok: bool
    error_code: str | None = None


def next_position(max_position: int | None) -> int:
    """Position for a task appended to a project whose highest position is max_position."""
    if max_position is None:
        return FIRST_POSITION
    return max_position + 1


def board_sort_key(task: TaskLike) -> tuple:
    """Sort key for position ASC, created_at DESC."""
    return (task.position, -as_utc(task.created_at).timestamp())


def sort_board(tasks: Iterable[TaskLike]) -> list:
    return sorted(tasks, key=board_sort_key)


def build_task_patch(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Drop UNSET values and reject None for non-nullable fields."""
    patch: dict[str, Any] = {}
    for name, value in changes.items():
        if name not in UPDATABLE_FIELDS:
            raise ValidationFailedError(f"Field '{name}' cannot be updated", name)
        if value is UNSET:
            continue
        if value is None and name not in NULLABLE_FIELDS:
            raise ValidationFailedError(f"Field '{name}' cannot be cleared", name)
        patch[name] = value
    return patch


def status_position_patch(
    status: TaskStatus, position: int | None = None,
) -> dict[str, Any]:
    """Status is always written; position only when provided."""
    patch: dict[str, Any] = {"status": status.value}
    if position is not None:
        patch["position"] = position
    return patch


def reorder_patch(item: ReorderItem) -> dict[str, Any]:
    patch: dict[str, Any] = {"position": item.position}
    if item.status is not None:
        patch["status"] = item.status.value
    return patch


def normalize_comment(content: str | None) -> str:
    """Trimmed comment text; empty or whitespace-only is rejected."""
    text = (content or "").strip()
    if not text:
        raise ValidationFailedError("Comment content is required", "content")
    if len(text) > COMMENT_MAX_LENGTH:
        raise ValidationFailedError(
            f"Comment cannot be more than {COMMENT_MAX_LENGTH} characters",
            "content",
        )
    return text


def task_stats(statuses: Iterable[str]) -> dict[str, int]:
    """Lane counts for a project's tasks."""
    stats = {"total": 0, "todo": 0, "inprogress": 0, "completed": 0}
    for status in statuses:
        stats["total"] += 1
        stats[TaskStatus(status).value] += 1
    return stats


def progress_percent(stats: Mapping[str, int]) -> int:
    if stats["total"] == 0:
        return 0
    return round(stats["completed"] / stats["total"] * 100)
