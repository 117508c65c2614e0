"""Invitation Service — send, respond, cancel, list and expire invitations.

Invariants:
    - send: project exists -> policy -> invited user exists -> not a member -> no pending
      duplicate; each failure is a distinct error
    - respond: only the invitee; only from pending; expiry re-checked at respond time and
      persisted as 'expired' before ExpiredError is raised
    - accept grants membership (member entry + user project set) in the SAME commit as
      the status change; any failure rolls back all three writes
    - cancel deletes the row, only from pending, only by owner or sender
    - Racing respond/cancel: the loser sees InvalidState or NotFound, never a second success

Design Decisions:
    - Status change is a conditional UPDATE (WHERE status='pending'): the database decides
      the race winner without a lock
    - Listings expire stale rows for the listed scope first (passive expiry on read)
"""

import logging
from datetime import datetime
from typing import Callable
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.core.authorization import Action, require
from app.core.domain_types import (
    InvitableRole, InvitationResponse, InvitationStatus,
)
from app.core.errors import (
    ConflictError, ErrorContext, ForbiddenError, InvalidStateError,
    InvitationExpiredError, ResourceNotFoundError,
)
from app.core.invitation_rules import (
    CancelCheck, InviteCheck, RespondCheck,
    check_can_invite, check_cancellable, check_respondable,
    compute_expires_at, is_expired, resolve_response,
)
from app.core.membership import is_member, resolve_role
from app.core.pagination import paginate
from app.core.repository_protocols import Repositories
from app.services.access import AccessService, utcnow

logger = logging.getLogger(__name__)

_PENDING = InvitationStatus.PENDING.value
_INBOX_RESOLVE = ("project", "invited_by")
_PROJECT_RESOLVE = ("invited_by", "invited_user")
_FULL_RESOLVE = ("project", "invited_by", "invited_user")


class InvitationService:
    """Invitation lifecycle orchestration over the repositories."""

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

    async def send_invitation(
        self,
        actor_id: UUID,
        project_id: UUID,
        email: str,
        role: InvitableRole = InvitableRole.MEMBER,
        message: str | None = None,
    ) -> dict:
        project, _ = await self.access.require_project(
            project_id, actor_id, Action.SEND_INVITATION,
        )
        invited = await self.repos.users.get_by_email(email)
        if invited is None or not invited.is_active:
            raise ResourceNotFoundError("User", email)

        now = self.clock()
        pending = await self.repos.invitations.find_pending(project.id, invited.id)
        if pending is not None and is_expired(pending, now):
            await self.repos.invitations.transition_status(
                pending.id, _PENDING, InvitationStatus.EXPIRED.value,
            )
            pending = None

        check = check_can_invite(project, invited.id, pending is not None)
        if check is InviteCheck.ALREADY_MEMBER:
            raise ConflictError("User is already a member of this project")
        if check is InviteCheck.PENDING_EXISTS:
            raise ConflictError("Invitation already sent to this user")

        try:
            invitation = await self.repos.invitations.create({
                "project_id": project.id,
                "invited_by_id": actor_id,
                "invited_user_id": invited.id,
                "role": InvitableRole(role).value,
                "message": message,
                "status": _PENDING,
                "expires_at": compute_expires_at(now, self.settings.invitation_ttl_days),
                "created_at": now,
            })
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Invitation already sent to this user")

        logger.info(
            "Invitation sent",
            extra={
                "invitation_id": invitation.id, "project_id": project.id,
                "user_id": actor_id,
            },
        )
        return await self.repos.invitations.get_view(invitation.id, _FULL_RESOLVE)

    async def respond_to_invitation(
        self, actor_id: UUID, invitation_id: UUID, response: InvitationResponse,
    ) -> dict:
        invitation = await self._load(invitation_id)
        project_id, granted_role = invitation.project_id, invitation.role
        now = self.clock()
        context = ErrorContext(
            user_id=str(actor_id), invitation_id=str(invitation_id),
        )

        check = check_respondable(invitation, actor_id, now)
        if check is RespondCheck.NOT_INVITEE:
            raise ForbiddenError("respond_to_invitation", context)
        if check is RespondCheck.NOT_PENDING:
            raise InvalidStateError("Invitation has already been responded to", context)
        if check is RespondCheck.EXPIRED:
            await self.repos.invitations.transition_status(
                invitation_id, _PENDING, InvitationStatus.EXPIRED.value,
            )
            await self.db.commit()
            logger.info(
                "Invitation expired at response time",
                extra={"invitation_id": invitation_id},
            )
            raise InvitationExpiredError(str(invitation_id))

        transition = resolve_response(InvitationResponse(response), now)
        project = None
        if transition.grants_membership:
            project = await self.access.load_project(project_id)
            if is_member(project, actor_id):
                raise ConflictError("User is already a member of this project", context)

        applied = await self.repos.invitations.transition_status(
            invitation_id, _PENDING, transition.status.value, transition.responded_at,
        )
        if not applied:
            await self.db.rollback()
            if await self.repos.invitations.get_by_id(invitation_id) is None:
                raise ResourceNotFoundError("Invitation", str(invitation_id), context)
            raise InvalidStateError("Invitation has already been responded to", context)

        if project is not None:
            await self.repos.projects.add_member(
                project, actor_id, granted_role, transition.responded_at,
            )
            await self.repos.users.add_project(actor_id, project.id)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("User is already a member of this project", context)

        logger.info(
            f"Invitation {transition.status.value}",
            extra={
                "invitation_id": invitation_id, "project_id": project_id,
                "user_id": actor_id,
            },
        )
        return await self.repos.invitations.get_view(invitation_id, _FULL_RESOLVE)

    async def cancel_invitation(self, actor_id: UUID, invitation_id: UUID) -> None:
        invitation = await self._load(invitation_id)
        project = await self.access.load_project(invitation.project_id)
        context = ErrorContext(
            user_id=str(actor_id), invitation_id=str(invitation_id),
            project_id=str(project.id),
        )
        require(
            resolve_role(project, actor_id), Action.CANCEL_INVITATION,
            is_sender=invitation.invited_by_id == actor_id, context=context,
        )
        if check_cancellable(invitation) is CancelCheck.NOT_PENDING:
            raise InvalidStateError("Can only cancel pending invitations", context)

        deleted = await self.repos.invitations.delete_if_pending(invitation_id)
        if not deleted:
            await self.db.rollback()
            if await self.repos.invitations.get_by_id(invitation_id) is None:
                raise ResourceNotFoundError("Invitation", str(invitation_id), context)
            raise InvalidStateError("Can only cancel pending invitations", context)
        await self.db.commit()
        logger.info(
            "Invitation cancelled",
            extra={"invitation_id": invitation_id, "user_id": actor_id},
        )

    async def list_invitations(
        self,
        actor_id: UUID,
        project_id: UUID | None = None,
        status: InvitationStatus | str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> dict:
        """Inbox of actor_id, or a project's invitations when project_id is given."""
        now = self.clock()
        if project_id is not None:
            await self.access.require_project(
                project_id, actor_id, Action.VIEW_PROJECT_INVITATIONS,
            )
            filters: dict = {"project_id": project_id}
            resolve = _PROJECT_RESOLVE
            expired = await self.repos.invitations.expire_stale(now, project_id=project_id)
        else:
            filters = {"invited_user_id": actor_id}
            resolve = _INBOX_RESOLVE
            expired = await self.repos.invitations.expire_stale(
                now, invited_user_id=actor_id,
            )
        if expired:
            await self.db.commit()
        if status:
            filters["status"] = InvitationStatus(status).value

        total = await self.repos.invitations.count(filters)
        pagination = paginate(
            page, limit or self.settings.default_page_size, total,
            default_limit=self.settings.default_page_size,
            max_limit=self.settings.max_page_size,
        )
        rows = await self.repos.invitations.find(
            filters, order_by=("-created_at",),
            skip=pagination.skip, limit=pagination.page_size,
        )
        return {
            "invitations": await self.repos.invitations.views(rows, resolve),
            "pagination": pagination.to_dict(),
        }

    async def expire_stale_invitations(self) -> int:
        """Bulk pending -> expired for every past-due invitation."""
        count = await self.repos.invitations.expire_stale(self.clock())
        await self.db.commit()
        if count:
            logger.info("Expired stale invitations", extra={"count": count})
        return count

    async def _load(self, invitation_id: UUID):
        invitation = await self.repos.invitations.get_by_id(invitation_id)
        if invitation is None:
            raise ResourceNotFoundError(
                "Invitation", str(invitation_id),
                ErrorContext(invitation_id=str(invitation_id)),
            )
        return invitation
