"""Task Repository — board queries, patches, comments and task views.

Invariants:
    - Board listings order by position ASC, created_at DESC
    - apply_patch is one UPDATE statement; scoping by project_id makes a task from
      another project count as "not found"
    - delete removes the task's comments and the task row in the caller's transaction
"""

from datetime import datetime
from typing import Any, Iterable
from uuid import UUID

from sqlalchemy import delete, func, select, update

from app.infrastructure.repositories.base import SqlRepository
from app.infrastructure.repositories.views import comment_view, task_view, user_summary
from app.models.project import Project
from app.models.task import Task, TaskComment
from app.models.user import User


class SqlTaskRepository(SqlRepository[Task]):
    model = Task
    collections = ("comments",)

    async def max_position(self, project_id: UUID) -> int | None:
        result = await self.db.execute(
            select(func.max(Task.position)).where(Task.project_id == project_id),
        )
        return result.scalar_one_or_none()

    async def find_board(
        self,
        project_id: UUID,
        filters: dict[str, Any] | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Task]:
        query = self._apply_filters(
            select(Task).where(Task.project_id == project_id), filters,
        )
        query = query.order_by(Task.position.asc(), Task.created_at.desc())
        query = query.execution_options(populate_existing=True)
        if skip:
            query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def apply_patch(
        self, task_id: UUID, patch: dict[str, Any], project_id: UUID | None = None,
    ) -> bool:
        query = update(Task).where(Task.id == task_id)
        if project_id is not None:
            query = query.where(Task.project_id == project_id)
        result = await self.db.execute(
            query.values(**patch).execution_options(synchronize_session="fetch"),
        )
        return result.rowcount > 0

    async def add_comment(
        self, task: Task, user_id: UUID, content: str, created_at: datetime,
    ) -> TaskComment:
        comment = TaskComment(user_id=user_id, content=content, created_at=created_at)
        task.comments.append(comment)
        await self.db.flush()
        return comment

    async def delete(self, entity_id: UUID) -> bool:
        await self.db.execute(
            delete(TaskComment)
            .where(TaskComment.task_id == entity_id)
            .execution_options(synchronize_session="fetch"),
        )
        return await super().delete(entity_id)

    async def get_view(
        self, task_id: UUID, resolve: Iterable[str] = (),
    ) -> dict | None:
        """Task view; resolve may name 'assignee', 'creator', 'comments', 'project'."""
        task = await self.get_by_id(task_id)
        if task is None:
            return None
        return (await self.views([task], resolve))[0]

    async def views(self, tasks: list[Task], resolve: Iterable[str] = ()) -> list[dict]:
        """Batch form of get_view: one user lookup for the whole page."""
        resolve = set(resolve)
        user_ids: set[UUID] = set()
        for task in tasks:
            if "assignee" in resolve and task.assigned_to_id:
                user_ids.add(task.assigned_to_id)
            if "creator" in resolve:
                user_ids.add(task.created_by_id)
            if "comments" in resolve:
                user_ids.update(c.user_id for c in task.comments)
        users: dict[UUID, dict] = {}
        if user_ids:
            result = await self.db.execute(select(User).where(User.id.in_(user_ids)))
            users = {u.id: user_summary(u) for u in result.scalars().all()}

        projects: dict[UUID, dict] = {}
        if "project" in resolve and tasks:
            result = await self.db.execute(
                select(Project).where(Project.id.in_({t.project_id for t in tasks})),
            )
            projects = {
                p.id: {"id": str(p.id), "name": p.name, "owner_id": str(p.owner_id)}
                for p in result.scalars().all()
            }

        views = []
        for task in tasks:
            view = task_view(task)
            if "assignee" in resolve:
                view["assigned_to"] = users.get(task.assigned_to_id)
            if "creator" in resolve:
                view["created_by"] = users.get(task.created_by_id)
            if "comments" in resolve:
                view["comments"] = [comment_view(c, users) for c in task.comments]
            if "project" in resolve:
                view["project"] = projects.get(task.project_id)
            views.append(view)
        return views
