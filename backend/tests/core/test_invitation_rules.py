"""Invitation State Machine — tests for pure invite/respond/cancel/expiry rules.

Tests cover:
    - expires_at = now + ttl; expiry is strictly after expires_at
    - check_can_invite: member before duplicate
    - check_respondable ordering: invitee, then pending, then expiry
    - resolve_response grants membership only on accept
    - only pending invitations are cancellable
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

from app.core.domain_types import InvitationResponse, InvitationStatus
from app.core.invitation_rules import (
    CancelCheck, InviteCheck, RespondCheck,
    as_utc, check_can_invite, check_cancellable, check_respondable,
    compute_expires_at, is_expired, resolve_response,
)

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


@dataclass
class Invitation:
    invited_user_id: UUID
    status: str = "pending"
    expires_at: datetime = NOW + timedelta(days=7)
    id: UUID = field(default_factory=uuid4)
    project_id: UUID = field(default_factory=uuid4)
    invited_by_id: UUID = field(default_factory=uuid4)


@dataclass
class Member:
    user_id: UUID
    role: str


@dataclass
class Project:
    owner_id: UUID
    members: list
    id: UUID = field(default_factory=uuid4)


# ─── Expiry ─────────────────────────────────────────────────────

def test_compute_expires_at_adds_ttl_days():
    assert compute_expires_at(NOW) == NOW + timedelta(days=7)
    assert compute_expires_at(NOW, 1) == NOW + timedelta(days=1)


def test_is_expired_is_strict():
    inv = Invitation(uuid4(), expires_at=NOW)
    assert not is_expired(inv, NOW)
    assert is_expired(inv, NOW + timedelta(microseconds=1))


def test_naive_datetimes_are_treated_as_utc():
    naive = datetime(2026, 3, 1, 9, 0)
    assert as_utc(naive) == NOW
    inv = Invitation(uuid4(), expires_at=naive)
    assert not is_expired(inv, NOW)


# ─── Invite ─────────────────────────────────────────────────────

def test_check_can_invite():
    owner, member, outsider = uuid4(), uuid4(), uuid4()
    project = Project(owner, [Member(owner, "owner"), Member(member, "member")])
    assert check_can_invite(project, outsider, False) is InviteCheck.OK
    assert check_can_invite(project, outsider, True) is InviteCheck.PENDING_EXISTS
    assert check_can_invite(project, member, True) is InviteCheck.ALREADY_MEMBER
    assert check_can_invite(project, owner, False) is InviteCheck.ALREADY_MEMBER


# ─── Respond ────────────────────────────────────────────────────

def test_only_invitee_may_respond():
    inv = Invitation(uuid4())
    assert check_respondable(inv, uuid4(), NOW) is RespondCheck.NOT_INVITEE
    assert check_respondable(inv, inv.invited_user_id, NOW) is RespondCheck.OK


def test_not_pending_checked_before_expiry():
    inv = Invitation(uuid4(), status="declined", expires_at=NOW - timedelta(days=1))
    assert check_respondable(inv, inv.invited_user_id, NOW) is RespondCheck.NOT_PENDING


def test_past_due_pending_is_expired_at_respond_time():
    inv = Invitation(uuid4(), expires_at=NOW - timedelta(minutes=1))
    assert check_respondable(inv, inv.invited_user_id, NOW) is RespondCheck.EXPIRED


def test_accept_grants_membership():
    transition = resolve_response(InvitationResponse.ACCEPT, NOW)
    assert transition.status is InvitationStatus.ACCEPTED
    assert transition.grants_membership
    assert transition.responded_at == NOW


def test_decline_grants_nothing():
    transition = resolve_response(InvitationResponse.DECLINE, NOW)
    assert transition.status is InvitationStatus.DECLINED
    assert not transition.grants_membership


# ─── Cancel ─────────────────────────────────────────────────────

def test_only_pending_is_cancellable():
    assert check_cancellable(Invitation(uuid4())) is CancelCheck.OK
    for status in ("accepted", "declined", "expired"):
        inv = Invitation(uuid4(), status=status)
        assert check_cancellable(inv) is CancelCheck.NOT_PENDING
