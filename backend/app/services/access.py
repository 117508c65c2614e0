"""Access Service — loads the project/task behind an action and runs the policy.

Invariants:
    - Absent project/task raises ResourceNotFoundError BEFORE any policy check
    - Every loaded project passes check_owner_invariant (loud on corruption)
    - authorize() never raises for a deny; require_* raise ForbiddenError

Design Decisions:
    - Task actions resolve the role against the task's project; the creator flag is
      passed through so DELETE_TASK can admit a former member
"""

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from app.core.authorization import Action, Decision, authorize, require
from app.core.domain_types import ProjectRole
from app.core.errors import ErrorContext, ResourceNotFoundError
from app.core.membership import check_owner_invariant, resolve_role
from app.core.repository_protocols import Repositories

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccessService:
    """Project/task loading plus role resolution and policy enforcement."""

    def __init__(self, repos: Repositories):
        self.repos = repos

    async def load_project(self, project_id: UUID) -> Any:
        project = await self.repos.projects.get_by_id(project_id)
        if project is None:
            raise ResourceNotFoundError(
                "Project", str(project_id), ErrorContext(project_id=str(project_id)),
            )
        check_owner_invariant(project)
        return project

    async def load_task(self, task_id: UUID) -> tuple[Any, Any]:
        task = await self.repos.tasks.get_by_id(task_id)
        if task is None:
            raise ResourceNotFoundError(
                "Task", str(task_id), ErrorContext(task_id=str(task_id)),
            )
        project = await self.load_project(task.project_id)
        return task, project

    async def authorize(self, target: Any, user_id: UUID, action: Action) -> Decision:
        """Decision for user_id on a project or a task (tasks carry created_by_id)."""
        if hasattr(target, "created_by_id"):
            project = await self.load_project(target.project_id)
            role = resolve_role(project, user_id)
            return authorize(role, action, is_creator=target.created_by_id == user_id)
        return authorize(resolve_role(target, user_id), action)

    async def require_project(
        self, project_id: UUID, user_id: UUID, action: Action,
    ) -> tuple[Any, ProjectRole]:
        project = await self.load_project(project_id)
        role = resolve_role(project, user_id)
        require(
            role, action,
            context=ErrorContext(user_id=str(user_id), project_id=str(project_id)),
        )
        return project, role

    async def require_task(
        self, task_id: UUID, user_id: UUID, action: Action,
    ) -> tuple[Any, Any, ProjectRole]:
        task, project = await self.load_task(task_id)
        role = resolve_role(project, user_id)
        require(
            role, action,
            is_creator=task.created_by_id == user_id,
            context=ErrorContext(
                user_id=str(user_id), project_id=str(project.id), task_id=str(task_id),
            ),
        )
        return task, project, role
