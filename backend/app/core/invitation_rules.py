"""Invitation State Machine — pure rules for create, respond, cancel and expiry.

Invariants:
    - States: pending -> accepted | declined | expired (terminal); cancel deletes, only from pending
    - At most one pending invitation per (project, invited user)
    - Expiry is re-evaluated at respond time regardless of any background sweep
    - Every function is PURE: returns a verdict, the shell applies the mutation

Design Decisions:
    - Verdict enums instead of exceptions for respond/cancel: the shell must persist the
      expired transition BEFORE raising, so the core cannot raise on EXPIRED itself
    - as_utc() normalizes naive datetimes read back from SQLite to UTC
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Protocol
from uuid import UUID

from app.core.domain_types import InvitationResponse, InvitationStatus
from app.core.membership import ProjectLike, is_member


DEFAULT_TTL_DAYS: int = 7


class InvitationLike(Protocol):
    id: UUID
    project_id: UUID
    invited_by_id: UUID
    invited_user_id: UUID
    status: str
    expires_at: datetime


class RespondCheck(str, Enum):
    OK = "ok"
    NOT_INVITEE = "not_invitee"
    NOT_PENDING = "not_pending"
    EXPIRED = "expired"


class CancelCheck(str, Enum):
    OK = "ok"
    NOT_PENDING = "not_pending"


class InviteCheck(str, Enum):
    OK = "ok"
    ALREADY_MEMBER = "already_member"
    PENDING_EXISTS = "pending_exists"


@dataclass(frozen=True)
class ResponseTransition:
    """What the shell must write when a response is applied."""
    status: InvitationStatus
    responded_at: datetime
    grants_membership: bool


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def compute_expires_at(now: datetime, ttl_days: int = DEFAULT_TTL_DAYS) -> datetime:
    return as_utc(now) + timedelta(days=ttl_days)


def is_expired(invitation: InvitationLike, now: datetime) -> bool:
    """expires_at strictly in the past."""
    return as_utc(invitation.expires_at) < as_utc(now)


def check_can_invite(
    project: ProjectLike, invited_user_id: UUID, has_pending: bool,
) -> InviteCheck:
    """Membership and duplicate checks, in that order."""
    if is_member(project, invited_user_id):
        return InviteCheck.ALREADY_MEMBER
    if has_pending:
        return InviteCheck.PENDING_EXISTS
    return InviteCheck.OK


def check_respondable(
    invitation: InvitationLike, actor_id: UUID, now: datetime,
) -> RespondCheck:
    """Invitee check, then pending check, then expiry check."""
    if invitation.invited_user_id != actor_id:
        return RespondCheck.NOT_INVITEE
    if InvitationStatus(invitation.status) is not InvitationStatus.PENDING:
        return RespondCheck.NOT_PENDING
    if is_expired(invitation, now):
        return RespondCheck.EXPIRED
    return RespondCheck.OK


def resolve_response(
    response: InvitationResponse, now: datetime,
) -> ResponseTransition:
    if response is InvitationResponse.ACCEPT:
        return ResponseTransition(InvitationStatus.ACCEPTED, as_utc(now), True)
    return ResponseTransition(InvitationStatus.DECLINED, as_utc(now), False)


def check_cancellable(invitation: InvitationLike) -> CancelCheck:
    if InvitationStatus(invitation.status) is not InvitationStatus.PENDING:
        return CancelCheck.NOT_PENDING
    return CancelCheck.OK
