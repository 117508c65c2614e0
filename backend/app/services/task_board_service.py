"""Task Board Service — task CRUD, status/position moves, bulk reorder, comments.

Invariants:
    - Every operation resolves the task's project and runs the policy before writing
    - New tasks append at max(position) + 1 within their project
    - bulk_reorder_tasks applies each item as its own UPDATE + commit; one bad item
      never undoes or blocks the others
    - delete_task removes comments and the task row in one commit

Design Decisions:
    - Reorder items are scoped by project_id in the UPDATE itself: a task from another
      project matches zero rows and reports NOT_FOUND
    - Ids are captured before writes; ORM objects are re-read through get_view after commit
"""

import logging
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.core.authorization import Action
from app.core.domain_types import Priority, TaskStatus
from app.core.errors import ErrorContext, ResourceNotFoundError
from app.core.pagination import paginate
from app.core.repository_protocols import Repositories
from app.core.task_board import (
    ReorderItem, ReorderItemResult,
    build_task_patch, next_position, normalize_comment, reorder_patch,
    status_position_patch,
)
from app.services.access import AccessService, utcnow

logger = logging.getLogger(__name__)

_DETAIL_RESOLVE = ("assignee", "creator", "comments", "project")
_LIST_RESOLVE = ("assignee", "creator")


def _enum_value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


class TaskBoardService:
    """Task operations inside a project board."""

    def __init__(
        self,
        db: AsyncSession,
        repos: Repositories,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.repos = repos
        self.settings = settings or get_settings()
        self.clock = clock
        self.access = AccessService(repos)

    async def create_task(
        self,
        actor_id: UUID,
        project_id: UUID,
        title: str,
        description: str | None = None,
        priority: Priority = Priority.MEDIUM,
        assigned_to_id: UUID | None = None,
        due_date: datetime | None = None,
        tags: Iterable[str] | None = None,
    ) -> dict:
        await self.access.require_project(project_id, actor_id, Action.CREATE_TASK)
        await self._require_assignee(assigned_to_id, project_id)

        position = next_position(await self.repos.tasks.max_position(project_id))
        task = await self.repos.tasks.create({
            "project_id": project_id,
            "title": title,
            "description": description,
            "status": TaskStatus.TODO.value,
            "priority": _enum_value(priority),
            "assigned_to_id": assigned_to_id,
            "created_by_id": actor_id,
            "due_date": due_date,
            "tags": list(tags or []),
            "position": position,
            "created_at": self.clock(),
        })
        task_id = task.id
        await self.db.commit()
        logger.info(
            f"Task created at position {position}",
            extra={"task_id": task_id, "project_id": project_id, "user_id": actor_id},
        )
        return await self.repos.tasks.get_view(task_id, _DETAIL_RESOLVE)

    async def get_task(self, actor_id: UUID, task_id: UUID) -> dict:
        await self.access.require_task(task_id, actor_id, Action.VIEW_TASK)
        return await self.repos.tasks.get_view(task_id, _DETAIL_RESOLVE)

    async def list_tasks(
        self,
        actor_id: UUID,
        project_id: UUID,
        status: TaskStatus | str | None = None,
        assigned_to_id: UUID | None = None,
        priority: Priority | str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> dict:
        """Board listing ordered position ASC, created_at DESC."""
        await self.access.require_project(project_id, actor_id, Action.VIEW_PROJECT)
        filters: dict[str, Any] = {"project_id": project_id}
        if status:
            filters["status"] = TaskStatus(status).value
        if assigned_to_id:
            filters["assigned_to_id"] = assigned_to_id
        if priority:
            filters["priority"] = Priority(priority).value

        total = await self.repos.tasks.count(filters)
        pagination = paginate(
            page, limit or self.settings.task_page_size, total,
            default_limit=self.settings.task_page_size,
            max_limit=self.settings.max_page_size,
        )
        filters.pop("project_id")
        tasks = await self.repos.tasks.find_board(
            project_id, filters, skip=pagination.skip, limit=pagination.page_size,
        )
        return {
            "tasks": await self.repos.tasks.views(tasks, _LIST_RESOLVE),
            "pagination": pagination.to_dict(),
        }

    async def update_task(
        self, actor_id: UUID, task_id: UUID, changes: Mapping[str, Any],
    ) -> dict:
        """Partial update; UNSET/omitted keys stay untouched, None clears nullables."""
        _, project, _ = await self.access.require_task(
            task_id, actor_id, Action.UPDATE_TASK,
        )
        patch = {k: _enum_value(v) for k, v in build_task_patch(changes).items()}
        if patch.get("assigned_to_id") is not None:
            await self._require_assignee(patch["assigned_to_id"], project.id)
        if patch:
            await self.repos.tasks.apply_patch(task_id, patch)
            await self.db.commit()
            logger.info(
                f"Task updated: {', '.join(sorted(patch))}",
                extra={"task_id": task_id, "user_id": actor_id},
            )
        return await self.repos.tasks.get_view(task_id, _DETAIL_RESOLVE)

    async def set_task_status_and_position(
        self,
        actor_id: UUID,
        task_id: UUID,
        status: TaskStatus,
        position: int | None = None,
    ) -> dict:
        await self.access.require_task(task_id, actor_id, Action.UPDATE_TASK)
        patch = status_position_patch(TaskStatus(status), position)
        await self.repos.tasks.apply_patch(task_id, patch)
        await self.db.commit()
        logger.info(
            f"Task moved to {patch['status']}",
            extra={"task_id": task_id, "user_id": actor_id},
        )
        return await self.repos.tasks.get_view(task_id, _DETAIL_RESOLVE)

    async def bulk_reorder_tasks(
        self, actor_id: UUID, project_id: UUID, items: Iterable[ReorderItem],
    ) -> list[ReorderItemResult]:
        """Apply each (task, position, status?) independently; report per item."""
        await self.access.require_project(project_id, actor_id, Action.REORDER_TASKS)
        results: list[ReorderItemResult] = []
        for item in items:
            try:
                applied = await self.repos.tasks.apply_patch(
                    item.task_id, reorder_patch(item), project_id=project_id,
                )
                if not applied:
                    await self.db.rollback()
                    results.append(
                        ReorderItemResult(item.task_id, False, "NOT_FOUND"),
                    )
                    continue
                await self.db.commit()
                results.append(ReorderItemResult(item.task_id, True))
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.warning(
                    f"Reorder item failed: {e}",
                    extra={"task_id": item.task_id, "project_id": project_id},
                )
                results.append(
                    ReorderItemResult(item.task_id, False, "DATABASE_ERROR"),
                )

        applied_count = sum(1 for r in results if r.ok)
        logger.info(
            f"Reordered {applied_count}/{len(results)} tasks",
            extra={"project_id": project_id, "user_id": actor_id, "count": applied_count},
        )
        return results

    async def delete_task(self, actor_id: UUID, task_id: UUID) -> None:
        _, project, _ = await self.access.require_task(
            task_id, actor_id, Action.DELETE_TASK,
        )
        project_id = project.id
        await self.repos.tasks.delete(task_id)
        await self.db.commit()
        logger.info(
            "Task deleted",
            extra={"task_id": task_id, "project_id": project_id, "user_id": actor_id},
        )

    async def add_comment(self, actor_id: UUID, task_id: UUID, content: str) -> dict:
        content = normalize_comment(content)
        task, _, _ = await self.access.require_task(
            task_id, actor_id, Action.COMMENT_TASK,
        )
        await self.repos.tasks.add_comment(task, actor_id, content, self.clock())
        await self.db.commit()
        logger.info("Comment added", extra={"task_id": task_id, "user_id": actor_id})
        return await self.repos.tasks.get_view(task_id, _DETAIL_RESOLVE)

    async def _require_assignee(self, user_id: UUID | None, project_id: UUID) -> None:
        if user_id is None:
            return
        if await self.repos.users.get_by_id(user_id) is None:
            raise ResourceNotFoundError(
                "User", str(user_id),
                ErrorContext(user_id=str(user_id), project_id=str(project_id)),
            )
