"""Membership Service — project lifecycle plus direct member add/remove.

Invariants:
    - create_project writes the project, the owner member entry and the owner's
      project-set row in one commit
    - add_member / remove_member change the member entry AND the user's project set in
      one commit; neither half persists alone
    - The owner can never be removed (InvalidStateError)
    - delete_project removes tasks, comments, invitations, members and project-set rows

Design Decisions:
    - Policy asymmetries kept as observed: admins may add but not remove members, and
      may update but not delete the project
"""

import logging
import random
from datetime import datetime
from typing import Any, Callable, Mapping
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.core.authorization import Action
from app.core.domain_types import (
    InvitableRole, Priority, ProjectColor, ProjectRole, ProjectStatus,
)
from app.core.errors import (
    ConflictError, ErrorContext, InvalidStateError, ResourceNotFoundError,
    ValidationFailedError,
)
from app.core.membership import check_owner_invariant, is_member
from app.core.pagination import paginate
from app.core.repository_protocols import Repositories
from app.services.access import AccessService, utcnow

logger = logging.getLogger(__name__)

_DETAIL_RESOLVE = ("owner", "members", "tasks", "stats")
_LIST_RESOLVE = ("owner", "members", "stats")
_PROJECT_FIELDS = frozenset({
    "name", "description", "color", "status", "priority", "deadline",
    "is_public", "allow_member_invites",
})


def _enum_value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


class MembershipService:
    """Projects and their member lists."""

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

    # ─── Projects ────────────────────────────────────────────────

    async def create_project(
        self,
        actor_id: UUID,
        name: str,
        description: str = "",
        color: ProjectColor | None = None,
        priority: Priority = Priority.MEDIUM,
        deadline: datetime | None = None,
    ) -> dict:
        now = self.clock()
        project = await self.repos.projects.create({
            "name": name,
            "description": description,
            "color": _enum_value(color or random.choice(list(ProjectColor))),
            "status": ProjectStatus.ACTIVE.value,
            "priority": _enum_value(priority),
            "deadline": deadline,
            "owner_id": actor_id,
            "created_at": now,
        })
        await self.repos.projects.add_member(
            project, actor_id, ProjectRole.OWNER.value, now,
        )
        check_owner_invariant(project)
        await self.repos.users.add_project(actor_id, project.id)
        project_id = project.id
        await self.db.commit()
        logger.info(
            "Project created", extra={"project_id": project_id, "user_id": actor_id},
        )
        return await self.repos.projects.get_view(project_id, ("owner", "members"))

    async def get_project(self, actor_id: UUID, project_id: UUID) -> dict:
        await self.access.require_project(project_id, actor_id, Action.VIEW_PROJECT)
        return await self.repos.projects.get_view(project_id, _DETAIL_RESOLVE)

    async def list_projects(
        self,
        actor_id: UUID,
        status: ProjectStatus | str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> dict:
        """Projects the actor owns or belongs to, newest first."""
        status_value = ProjectStatus(status).value if status else None
        total = await self.repos.projects.count_for_user(actor_id, status_value, search)
        pagination = paginate(
            page, limit or self.settings.default_page_size, total,
            default_limit=self.settings.default_page_size,
            max_limit=self.settings.max_page_size,
        )
        projects = await self.repos.projects.find_for_user(
            actor_id, status_value, search,
            skip=pagination.skip, limit=pagination.page_size,
        )
        views = [
            await self.repos.projects.get_view(p.id, _LIST_RESOLVE) for p in projects
        ]
        return {"projects": views, "pagination": pagination.to_dict()}

    async def update_project(
        self, actor_id: UUID, project_id: UUID, changes: Mapping[str, Any],
    ) -> dict:
        """Partial update: only keys present in changes are written."""
        await self.access.require_project(project_id, actor_id, Action.UPDATE_PROJECT)
        unknown = set(changes) - _PROJECT_FIELDS
        if unknown:
            field = sorted(unknown)[0]
            raise ValidationFailedError(f"Field '{field}' cannot be updated", field)
        values = {k: _enum_value(v) for k, v in changes.items()}
        for required in ("name", "description", "color", "status", "priority"):
            if required in values and values[required] is None:
                raise ValidationFailedError(
                    f"Field '{required}' cannot be cleared", required,
                )
        await self.repos.projects.update(project_id, values)
        await self.db.commit()
        logger.info(
            "Project updated", extra={"project_id": project_id, "user_id": actor_id},
        )
        return await self.repos.projects.get_view(project_id, ("owner", "members"))

    async def delete_project(self, actor_id: UUID, project_id: UUID) -> None:
        await self.access.require_project(project_id, actor_id, Action.DELETE_PROJECT)
        await self.repos.projects.delete_cascade(project_id)
        await self.db.commit()
        logger.info(
            "Project deleted", extra={"project_id": project_id, "user_id": actor_id},
        )

    # ─── Members ─────────────────────────────────────────────────

    async def add_member(
        self,
        actor_id: UUID,
        project_id: UUID,
        email: str | None = None,
        user_id: UUID | None = None,
        role: InvitableRole = InvitableRole.MEMBER,
    ) -> dict:
        project, _ = await self.access.require_project(
            project_id, actor_id, Action.ADD_MEMBER,
        )
        context = ErrorContext(user_id=str(actor_id), project_id=str(project_id))
        if email:
            user = await self.repos.users.get_by_email(email)
            lookup = email
        elif user_id:
            user = await self.repos.users.get_by_id(user_id)
            lookup = str(user_id)
        else:
            raise ValidationFailedError("Email or userId is required", "email")
        if user is None or not user.is_active:
            raise ResourceNotFoundError("User", lookup, context)
        new_member_id = user.id
        if is_member(project, new_member_id):
            raise ConflictError("User is already a member of this project", context)

        await self.repos.projects.add_member(
            project, new_member_id, InvitableRole(role).value, self.clock(),
        )
        await self.repos.users.add_project(new_member_id, project_id)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("User is already a member of this project", context)
        logger.info(
            "Member added",
            extra={"project_id": project_id, "user_id": new_member_id, "action": "add_member"},
        )
        return await self.repos.projects.get_view(project_id, ("owner", "members"))

    async def remove_member(
        self, actor_id: UUID, project_id: UUID, user_id: UUID,
    ) -> None:
        project, _ = await self.access.require_project(
            project_id, actor_id, Action.REMOVE_MEMBER,
        )
        context = ErrorContext(user_id=str(actor_id), project_id=str(project_id))
        if user_id == project.owner_id:
            raise InvalidStateError("Cannot remove project owner", context)
        removed = await self.repos.projects.remove_member(project, user_id)
        if not removed:
            raise ResourceNotFoundError("Member", str(user_id), context)
        await self.repos.users.remove_project(user_id, project_id)
        await self.db.commit()
        logger.info(
            "Member removed",
            extra={"project_id": project_id, "user_id": user_id, "action": "remove_member"},
        )
