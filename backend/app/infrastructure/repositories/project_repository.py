"""Project Repository — projects, member entries and the project-wide cascade delete.

Invariants:
    - Member entries are changed through the loaded Project.members collection so the
      in-session aggregate and the rows never disagree
    - delete_cascade removes comments, tasks, invitations, project-set rows, members
      and the project in dependency order, inside the caller's transaction
"""

from datetime import datetime
from typing import Iterable
from uuid import UUID

from sqlalchemy import delete, func, or_, select

from app.core.task_board import progress_percent, sort_board, task_stats
from app.infrastructure.repositories.base import SqlRepository
from app.infrastructure.repositories.views import (
    member_view, project_view, task_view, user_summary,
)
from app.models.invitation import Invitation
from app.models.project import Project, ProjectMember
from app.models.task import Task, TaskComment
from app.models.user import User, UserProject


class SqlProjectRepository(SqlRepository[Project]):
    model = Project
    collections = ("members",)

    async def add_member(
        self, project: Project, user_id: UUID, role: str, joined_at: datetime,
    ) -> ProjectMember:
        member = ProjectMember(user_id=user_id, role=role, joined_at=joined_at)
        project.members.append(member)
        await self.db.flush()
        return member

    async def remove_member(self, project: Project, user_id: UUID) -> bool:
        for member in list(project.members):
            if member.user_id == user_id:
                project.members.remove(member)
                await self.db.flush()
                return True
        return False

    def _for_user(self, query, user_id: UUID, status: str | None, search: str | None):
        member_projects = select(ProjectMember.project_id).where(
            ProjectMember.user_id == user_id,
        )
        query = query.where(
            or_(Project.owner_id == user_id, Project.id.in_(member_projects)),
        )
        if status:
            query = query.where(Project.status == status)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(Project.name.ilike(pattern), Project.description.ilike(pattern)),
            )
        return query

    async def find_for_user(
        self,
        user_id: UUID,
        status: str | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Project]:
        query = self._for_user(select(Project), user_id, status, search)
        query = query.order_by(Project.created_at.desc()).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_for_user(
        self, user_id: UUID, status: str | None = None, search: str | None = None,
    ) -> int:
        query = self._for_user(
            select(func.count()).select_from(Project), user_id, status, search,
        )
        result = await self.db.execute(query)
        return int(result.scalar_one())

    async def delete_cascade(self, project_id: UUID) -> None:
        task_ids = select(Task.id).where(Task.project_id == project_id)
        for statement in (
            delete(TaskComment).where(TaskComment.task_id.in_(task_ids)),
            delete(Task).where(Task.project_id == project_id),
            delete(Invitation).where(Invitation.project_id == project_id),
            delete(UserProject).where(UserProject.project_id == project_id),
            delete(ProjectMember).where(ProjectMember.project_id == project_id),
            delete(Project).where(Project.id == project_id),
        ):
            await self.db.execute(
                statement.execution_options(synchronize_session="fetch"),
            )

    async def get_view(
        self, project_id: UUID, resolve: Iterable[str] = (),
    ) -> dict | None:
        """Project view; resolve may name 'owner', 'members', 'tasks', 'stats'."""
        project = await self.get_by_id(project_id)
        if project is None:
            return None
        resolve = set(resolve)
        view = project_view(project)

        users = None
        if resolve & {"owner", "members"}:
            user_ids = {m.user_id for m in project.members} | {project.owner_id}
            result = await self.db.execute(select(User).where(User.id.in_(user_ids)))
            users = {u.id: user_summary(u) for u in result.scalars().all()}
        if "owner" in resolve:
            view["owner"] = users.get(project.owner_id)
        view["members"] = [
            member_view(m, users if "members" in resolve else None)
            for m in project.members
        ]

        if resolve & {"tasks", "stats"}:
            result = await self.db.execute(
                select(Task)
                .where(Task.project_id == project_id)
                .execution_options(populate_existing=True),
            )
            tasks = sort_board(result.scalars().all())
            if "tasks" in resolve:
                view["tasks"] = [task_view(t) for t in tasks]
            if "stats" in resolve:
                stats = task_stats(t.status for t in tasks)
                view["task_stats"] = stats
                view["progress"] = progress_percent(stats)
        return view
