"""Invitation Repository — conditional lifecycle writes and invitation views.

Invariants:
    - transition_status and delete_if_pending are single conditional statements:
      exactly one of two racing callers sees rowcount == 1
    - expire_stale only touches pending rows whose expires_at is in the past
"""

from datetime import datetime
from typing import Iterable
from uuid import UUID

from sqlalchemy import delete, select, update

from app.core.domain_types import InvitationStatus
from app.infrastructure.repositories.base import SqlRepository
from app.infrastructure.repositories.views import invitation_view, user_summary
from app.models.invitation import Invitation
from app.models.project import Project
from app.models.user import User

_PENDING = InvitationStatus.PENDING.value


class SqlInvitationRepository(SqlRepository[Invitation]):
    model = Invitation

    async def find_pending(
        self, project_id: UUID, invited_user_id: UUID,
    ) -> Invitation | None:
        result = await self.db.execute(
            select(Invitation)
            .where(Invitation.project_id == project_id)
            .where(Invitation.invited_user_id == invited_user_id)
            .where(Invitation.status == _PENDING),
        )
        return result.scalar_one_or_none()

    async def transition_status(
        self,
        invitation_id: UUID,
        from_status: str,
        to_status: str,
        responded_at: datetime | None = None,
    ) -> bool:
        values: dict = {"status": to_status}
        if responded_at is not None:
            values["responded_at"] = responded_at
        result = await self.db.execute(
            update(Invitation)
            .where(Invitation.id == invitation_id)
            .where(Invitation.status == from_status)
            .values(**values)
            .execution_options(synchronize_session="fetch"),
        )
        return result.rowcount == 1

    async def delete_if_pending(self, invitation_id: UUID) -> bool:
        result = await self.db.execute(
            delete(Invitation)
            .where(Invitation.id == invitation_id)
            .where(Invitation.status == _PENDING)
            .execution_options(synchronize_session="fetch"),
        )
        return result.rowcount == 1

    async def expire_stale(
        self,
        now: datetime,
        project_id: UUID | None = None,
        invited_user_id: UUID | None = None,
    ) -> int:
        query = (
            update(Invitation)
            .where(Invitation.status == _PENDING)
            .where(Invitation.expires_at < now)
        )
        if project_id is not None:
            query = query.where(Invitation.project_id == project_id)
        if invited_user_id is not None:
            query = query.where(Invitation.invited_user_id == invited_user_id)
        result = await self.db.execute(
            query.values(status=InvitationStatus.EXPIRED.value)
            .execution_options(synchronize_session="fetch"),
        )
        return result.rowcount

    async def get_view(
        self, invitation_id: UUID, resolve: Iterable[str] = (),
    ) -> dict | None:
        """Invitation view; resolve may name 'project', 'invited_by', 'invited_user'."""
        invitation = await self.get_by_id(invitation_id)
        if invitation is None:
            return None
        return (await self.views([invitation], resolve))[0]

    async def views(
        self, invitations: list[Invitation], resolve: Iterable[str] = (),
    ) -> list[dict]:
        resolve = set(resolve)
        user_ids: set[UUID] = set()
        for inv in invitations:
            if "invited_by" in resolve:
                user_ids.add(inv.invited_by_id)
            if "invited_user" in resolve:
                user_ids.add(inv.invited_user_id)
        users: dict[UUID, dict] = {}
        if user_ids:
            result = await self.db.execute(select(User).where(User.id.in_(user_ids)))
            users = {u.id: user_summary(u) for u in result.scalars().all()}

        projects: dict[UUID, dict] = {}
        if "project" in resolve and invitations:
            result = await self.db.execute(
                select(Project).where(
                    Project.id.in_({i.project_id for i in invitations}),
                ),
            )
            projects = {
                p.id: {
                    "id": str(p.id), "name": p.name,
                    "description": p.description, "color": p.color,
                }
                for p in result.scalars().all()
            }

        views = []
        for inv in invitations:
            view = invitation_view(inv)
            if "project" in resolve:
                view["project"] = projects.get(inv.project_id)
            if "invited_by" in resolve:
                view["invited_by"] = users.get(inv.invited_by_id)
            if "invited_user" in resolve:
                view["invited_user"] = users.get(inv.invited_user_id)
            views.append(view)
        return views
