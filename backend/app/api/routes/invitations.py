"""Invitation Routes — inbox, respond, cancel, and per-project send/list.

Invariants:
    - Expired-at-respond surfaces as 410 INVITATION_EXPIRED, already-answered as 400
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_current_user_id, get_invitation_service
from app.core.domain_types import InvitationStatus
from app.schemas.invitation import InvitationCreate, InvitationRespond
from app.services.invitation_service import InvitationService

router = APIRouter(prefix="/api/v1/invitations", tags=["invitations"])


@router.get("")
async def list_my_invitations(
    status_filter: InvitationStatus | None = Query(None, alias="status"),
    page: int = Query(1),
    limit: int | None = Query(None),
    user_id: UUID = Depends(get_current_user_id),
    service: InvitationService = Depends(get_invitation_service),
):
    return await service.list_invitations(
        user_id, status=status_filter, page=page, limit=limit,
    )


@router.put("/{invitation_id}/respond")
async def respond_to_invitation(
    invitation_id: UUID,
    body: InvitationRespond,
    user_id: UUID = Depends(get_current_user_id),
    service: InvitationService = Depends(get_invitation_service),
):
    invitation = await service.respond_to_invitation(
        user_id, invitation_id, body.response,
    )
    return {"invitation": invitation}


@router.delete("/{invitation_id}")
async def cancel_invitation(
    invitation_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: InvitationService = Depends(get_invitation_service),
):
    await service.cancel_invitation(user_id, invitation_id)
    return {"message": "Invitation cancelled successfully"}


@router.post(
    "/projects/{project_id}/invite", status_code=status.HTTP_201_CREATED,
)
async def send_invitation(
    project_id: UUID,
    body: InvitationCreate,
    user_id: UUID = Depends(get_current_user_id),
    service: InvitationService = Depends(get_invitation_service),
):
    invitation = await service.send_invitation(
        user_id, project_id, body.email, body.role, body.message,
    )
    return {"invitation": invitation}


@router.get("/projects/{project_id}")
async def list_project_invitations(
    project_id: UUID,
    status_filter: InvitationStatus | None = Query(None, alias="status"),
    page: int = Query(1),
    limit: int | None = Query(None),
    user_id: UUID = Depends(get_current_user_id),
    service: InvitationService = Depends(get_invitation_service),
):
    return await service.list_invitations(
        user_id, project_id=project_id, status=status_filter, page=page, limit=limit,
    )
