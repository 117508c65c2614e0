"""Invitation Service — tests for send/respond/cancel/list against SQLite.

Tests cover:
    - full U1/U2 scenario: invite, accept, membership + project set, removal
    - duplicate pending invitation → Conflict; re-invite after decline/expiry/removal
    - invited user must exist; existing member → Conflict; policy checked
    - allow_member_invites is stored but never widens or narrows who may invite
    - respond: invitee only, expired → persisted 'expired' + 410, second respond → InvalidState
    - accept twice never duplicates the member entry
    - cancel: owner or sender only; accepted → InvalidState; second cancel → NotFound
    - listing expires past-due rows first; project listing needs admin
    - expire_stale_invitations touches only pending past-due rows
    - a respond or cancel that loses a race to another write fails with NotFound or
      InvalidState and grants no membership
"""

from datetime import timedelta
from uuid import UUID, uuid4

import pytest

from app.core.domain_types import InvitableRole, InvitationResponse, ProjectRole
from app.core.errors import (
    ConflictError, ForbiddenError, InvalidStateError, InvitationExpiredError,
    ResourceNotFoundError,
)
from app.core.membership import resolve_role


def _id(view: dict) -> UUID:
    return UUID(view["id"])


# ─── Scenario ───────────────────────────────────────────────────

async def test_invite_accept_then_remove_scenario(
    membership, invitations, repos, alice, dave,
):
    owner, invitee = _id(alice), _id(dave)
    project = await membership.create_project(owner, "Roadmap", "Quarterly roadmap work")
    project_id = _id(project)

    sent = await invitations.send_invitation(
        owner, project_id, dave["email"], InvitableRole.MEMBER,
    )
    assert sent["status"] == "pending"
    assert sent["invited_user"]["email"] == "dave@example.com"

    accepted = await invitations.respond_to_invitation(
        invitee, _id(sent), InvitationResponse.ACCEPT,
    )
    assert accepted["status"] == "accepted"
    assert accepted["responded_at"] is not None

    view = await membership.get_project(owner, project_id)
    roles = {m["user_id"]: m["role"] for m in view["members"]}
    assert roles[str(invitee)] == "member"
    assert project_id in await repos.users.project_ids(invitee)

    await membership.remove_member(owner, project_id, invitee)
    view = await membership.get_project(owner, project_id)
    assert str(invitee) not in {m["user_id"] for m in view["members"]}
    assert project_id not in await repos.users.project_ids(invitee)


# ─── Send ───────────────────────────────────────────────────────

async def test_duplicate_pending_invitation_conflicts(invitations, project, alice, dave):
    owner, project_id = _id(alice), _id(project)
    await invitations.send_invitation(owner, project_id, dave["email"])
    with pytest.raises(ConflictError) as exc:
        await invitations.send_invitation(owner, project_id, dave["email"])
    assert exc.value.message == "Invitation already sent to this user"


async def test_reinvite_after_decline_succeeds(invitations, project, alice, dave):
    owner, project_id = _id(alice), _id(project)
    first = await invitations.send_invitation(owner, project_id, dave["email"])
    await invitations.respond_to_invitation(
        _id(dave), _id(first), InvitationResponse.DECLINE,
    )
    second = await invitations.send_invitation(owner, project_id, dave["email"])
    assert second["id"] != first["id"]
    assert second["status"] == "pending"


async def test_reinvite_after_expiry_succeeds(invitations, project, alice, dave, clock):
    owner, project_id = _id(alice), _id(project)
    first = await invitations.send_invitation(owner, project_id, dave["email"])
    clock.advance(days=8)
    second = await invitations.send_invitation(owner, project_id, dave["email"])
    assert second["status"] == "pending"
    listing = await invitations.list_invitations(owner, project_id=project_id)
    statuses = {i["id"]: i["status"] for i in listing["invitations"]}
    assert statuses[first["id"]] == "expired"


async def test_reinvite_after_accept_and_removal_succeeds(
    invitations, membership, project, alice, dave,
):
    owner, project_id = _id(alice), _id(project)
    first = await invitations.send_invitation(owner, project_id, dave["email"])
    await invitations.respond_to_invitation(_id(dave), _id(first), InvitationResponse.ACCEPT)
    with pytest.raises(ConflictError):
        await invitations.send_invitation(owner, project_id, dave["email"])
    await membership.remove_member(owner, project_id, _id(dave))
    again = await invitations.send_invitation(owner, project_id, dave["email"])
    assert again["status"] == "pending"


async def test_invite_existing_member_conflicts(invitations, project, alice, carol):
    with pytest.raises(ConflictError) as exc:
        await invitations.send_invitation(_id(alice), _id(project), carol["email"])
    assert exc.value.message == "User is already a member of this project"


async def test_invite_unknown_email_not_found(invitations, project, alice):
    with pytest.raises(ResourceNotFoundError):
        await invitations.send_invitation(_id(alice), _id(project), "nobody@example.com")


async def test_member_cannot_invite(invitations, project, carol, dave):
    with pytest.raises(ForbiddenError):
        await invitations.send_invitation(_id(carol), _id(project), dave["email"])


async def test_admin_can_invite_with_admin_role(invitations, project, bob, dave):
    sent = await invitations.send_invitation(
        _id(bob), _id(project), dave["email"], InvitableRole.ADMIN, "Join us",
    )
    assert sent["role"] == "admin"
    assert sent["message"] == "Join us"
    assert sent["invited_by"]["name"] == "Bob"


async def test_invite_policy_ignores_allow_member_invites_flag(
    invitations, membership, project, alice, bob, carol, dave,
):
    for flag in (False, True):
        view = await membership.update_project(
            _id(alice), _id(project), {"allow_member_invites": flag},
        )
        assert view["allow_member_invites"] is flag
        with pytest.raises(ForbiddenError):
            await invitations.send_invitation(_id(carol), _id(project), dave["email"])

    sent = await invitations.send_invitation(_id(bob), _id(project), dave["email"])
    assert sent["status"] == "pending"


async def test_expiry_uses_configured_ttl(invitations, project, alice, dave, clock):
    sent = await invitations.send_invitation(_id(alice), _id(project), dave["email"])
    assert sent["expires_at"] == (clock() + timedelta(days=7)).isoformat()


# ─── Respond ────────────────────────────────────────────────────

async def test_only_invitee_can_respond(invitations, project, alice, carol, dave):
    sent = await invitations.send_invitation(_id(alice), _id(project), dave["email"])
    with pytest.raises(ForbiddenError):
        await invitations.respond_to_invitation(
            _id(carol), _id(sent), InvitationResponse.ACCEPT,
        )


async def test_expired_response_is_rejected_and_persisted(
    invitations, repos, project, alice, dave, clock,
):
    sent = await invitations.send_invitation(_id(alice), _id(project), dave["email"])
    clock.advance(days=7, seconds=1)
    with pytest.raises(InvitationExpiredError) as exc:
        await invitations.respond_to_invitation(
            _id(dave), _id(sent), InvitationResponse.ACCEPT,
        )
    assert exc.value.http_status == 410
    stored = await repos.invitations.get_by_id(_id(sent))
    assert stored.status == "expired"
    loaded = await repos.projects.get_by_id(_id(project))
    assert resolve_role(loaded, _id(dave)) is ProjectRole.NONE


async def test_response_at_exact_expiry_is_accepted(invitations, project, alice, dave, clock):
    sent = await invitations.send_invitation(_id(alice), _id(project), dave["email"])
    clock.advance(days=7)
    view = await invitations.respond_to_invitation(
        _id(dave), _id(sent), InvitationResponse.ACCEPT,
    )
    assert view["status"] == "accepted"


async def test_second_accept_is_invalid_state(invitations, repos, project, alice, dave):
    sent = await invitations.send_invitation(_id(alice), _id(project), dave["email"])
    await invitations.respond_to_invitation(_id(dave), _id(sent), InvitationResponse.ACCEPT)
    with pytest.raises(InvalidStateError):
        await invitations.respond_to_invitation(
            _id(dave), _id(sent), InvitationResponse.ACCEPT,
        )
    loaded = await repos.projects.get_by_id(_id(project))
    assert [m.user_id for m in loaded.members].count(_id(dave)) == 1


async def test_decline_grants_no_membership(invitations, repos, project, alice, dave):
    sent = await invitations.send_invitation(_id(alice), _id(project), dave["email"])
    view = await invitations.respond_to_invitation(
        _id(dave), _id(sent), InvitationResponse.DECLINE,
    )
    assert view["status"] == "declined"
    assert _id(project) not in await repos.users.project_ids(_id(dave))


async def test_accept_grants_invited_role(invitations, repos, project, alice, dave):
    sent = await invitations.send_invitation(
        _id(alice), _id(project), dave["email"], InvitableRole.ADMIN,
    )
    await invitations.respond_to_invitation(_id(dave), _id(sent), InvitationResponse.ACCEPT)
    loaded = await repos.projects.get_by_id(_id(project))
    assert resolve_role(loaded, _id(dave)) is ProjectRole.ADMIN


async def test_respond_to_unknown_invitation_not_found(invitations, dave):
    with pytest.raises(ResourceNotFoundError):
        await invitations.respond_to_invitation(
            _id(dave), uuid4(), InvitationResponse.ACCEPT,
        )


# ─── Cancel ─────────────────────────────────────────────────────

async def test_owner_cancels_then_second_cancel_not_found(
    invitations, project, alice, dave,
):
    sent = await invitations.send_invitation(_id(alice), _id(project), dave["email"])
    await invitations.cancel_invitation(_id(alice), _id(sent))
    with pytest.raises(ResourceNotFoundError):
        await invitations.cancel_invitation(_id(alice), _id(sent))


async def test_sender_admin_may_cancel(invitations, project, bob, dave):
    sent = await invitations.send_invitation(_id(bob), _id(project), dave["email"])
    await invitations.cancel_invitation(_id(bob), _id(sent))


async def test_admin_who_did_not_send_cannot_cancel(
    invitations, project, alice, bob, dave,
):
    sent = await invitations.send_invitation(_id(alice), _id(project), dave["email"])
    with pytest.raises(ForbiddenError):
        await invitations.cancel_invitation(_id(bob), _id(sent))


async def test_cancel_accepted_is_invalid_state(invitations, project, alice, dave):
    sent = await invitations.send_invitation(_id(alice), _id(project), dave["email"])
    await invitations.respond_to_invitation(_id(dave), _id(sent), InvitationResponse.ACCEPT)
    with pytest.raises(InvalidStateError) as exc:
        await invitations.cancel_invitation(_id(alice), _id(sent))
    assert exc.value.message == "Can only cancel pending invitations"


# ─── List / expire ──────────────────────────────────────────────

async def test_inbox_lists_with_project_and_sender(invitations, project, alice, dave):
    await invitations.send_invitation(_id(alice), _id(project), dave["email"])
    inbox = await invitations.list_invitations(_id(dave), status="pending")
    assert inbox["pagination"]["total"] == 1
    item = inbox["invitations"][0]
    assert item["project"]["name"] == "Launch"
    assert item["invited_by"]["email"] == "alice@example.com"


async def test_inbox_marks_past_due_as_expired(invitations, project, alice, dave, clock):
    await invitations.send_invitation(_id(alice), _id(project), dave["email"])
    clock.advance(days=30)
    assert (await invitations.list_invitations(_id(dave), status="pending"))["invitations"] == []
    expired = await invitations.list_invitations(_id(dave), status="expired")
    assert len(expired["invitations"]) == 1


async def test_member_cannot_list_project_invitations(invitations, project, carol):
    with pytest.raises(ForbiddenError):
        await invitations.list_invitations(_id(carol), project_id=_id(project))


async def test_sweep_expires_only_pending_past_due(
    invitations, users, project, alice, dave, clock,
):
    erin = await users.register_user("Erin", "erin@example.com")
    declined = await invitations.send_invitation(_id(alice), _id(project), dave["email"])
    await invitations.respond_to_invitation(
        _id(dave), _id(declined), InvitationResponse.DECLINE,
    )
    await invitations.send_invitation(_id(alice), _id(project), erin["email"])
    assert await invitations.expire_stale_invitations() == 0
    clock.advance(days=8)
    assert await invitations.expire_stale_invitations() == 1
    listing = await invitations.list_invitations(_id(alice), project_id=_id(project))
    statuses = sorted(i["status"] for i in listing["invitations"])
    assert statuses == ["declined", "expired"]


# ─── Concurrent respond / cancel ────────────────────────────────

async def test_accept_losing_to_cancel_is_not_found_and_grants_nothing(
    invitations, repos, test_db, monkeypatch, project, alice, dave,
):
    sent = await invitations.send_invitation(_id(alice), _id(project), dave["email"])
    invitation_id = _id(sent)
    transition = repos.invitations.transition_status

    async def cancelled_first(*args, **kwargs):
        assert await repos.invitations.delete_if_pending(invitation_id)
        await test_db.commit()
        return await transition(*args, **kwargs)

    monkeypatch.setattr(repos.invitations, "transition_status", cancelled_first)
    with pytest.raises(ResourceNotFoundError):
        await invitations.respond_to_invitation(
            _id(dave), invitation_id, InvitationResponse.ACCEPT,
        )

    project_row = await repos.projects.get_by_id(_id(project))
    assert resolve_role(project_row, _id(dave)) is ProjectRole.NONE
    assert _id(project) not in await repos.users.project_ids(_id(dave))


async def test_accept_losing_to_decline_is_invalid_state(
    invitations, repos, test_db, monkeypatch, project, alice, dave,
):
    sent = await invitations.send_invitation(_id(alice), _id(project), dave["email"])
    invitation_id = _id(sent)
    transition = repos.invitations.transition_status

    async def declined_first(*args, **kwargs):
        assert await transition(invitation_id, "pending", "declined")
        await test_db.commit()
        return await transition(*args, **kwargs)

    monkeypatch.setattr(repos.invitations, "transition_status", declined_first)
    with pytest.raises(InvalidStateError):
        await invitations.respond_to_invitation(
            _id(dave), invitation_id, InvitationResponse.ACCEPT,
        )

    project_row = await repos.projects.get_by_id(_id(project))
    assert resolve_role(project_row, _id(dave)) is ProjectRole.NONE


async def test_cancel_losing_to_accept_is_invalid_state(
    invitations, repos, test_db, monkeypatch, project, alice, dave,
):
    sent = await invitations.send_invitation(_id(alice), _id(project), dave["email"])
    invitation_id = _id(sent)
    delete_if_pending = repos.invitations.delete_if_pending

    async def accepted_first(target_id):
        assert await repos.invitations.transition_status(target_id, "pending", "accepted")
        await test_db.commit()
        return await delete_if_pending(target_id)

    monkeypatch.setattr(repos.invitations, "delete_if_pending", accepted_first)
    with pytest.raises(InvalidStateError):
        await invitations.cancel_invitation(_id(alice), invitation_id)

    row = await repos.invitations.get_by_id(invitation_id)
    assert row is not None and row.status == "accepted"


async def test_cancel_losing_to_cancel_is_not_found(
    invitations, repos, test_db, monkeypatch, project, alice, dave,
):
    sent = await invitations.send_invitation(_id(alice), _id(project), dave["email"])
    invitation_id = _id(sent)
    delete_if_pending = repos.invitations.delete_if_pending

    async def cancelled_first(target_id):
        assert await delete_if_pending(target_id)
        await test_db.commit()
        return await delete_if_pending(target_id)

    monkeypatch.setattr(repos.invitations, "delete_if_pending", cancelled_first)
    with pytest.raises(ResourceNotFoundError):
        await invitations.cancel_invitation(_id(alice), invitation_id)
