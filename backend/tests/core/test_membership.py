"""Membership Resolver — tests for role resolution and the owner invariant.

Tests cover:
    - owner resolves to OWNER even with a conflicting member entry
    - member entries resolve to their stored role
    - absent users resolve to NONE (never raise)
    - check_owner_invariant rejects missing, duplicate and mismatched owner entries
"""

from dataclasses import dataclass, field
from uuid import UUID, uuid4

import pytest

from app.core.domain_types import ProjectRole
from app.core.errors import InvariantViolationError
from app.core.membership import (
    check_owner_invariant, find_member, is_member, resolve_role,
)


@dataclass
class Member:
    user_id: UUID
    role: str


@dataclass
class Project:
    owner_id: UUID
    members: list[Member] = field(default_factory=list)
    id: UUID = field(default_factory=uuid4)


def _project():
    owner, admin, member = uuid4(), uuid4(), uuid4()
    project = Project(owner, [
        Member(owner, "owner"), Member(admin, "admin"), Member(member, "member"),
    ])
    return project, owner, admin, member


# ─── resolve_role ────────────────────────────────────────────────

def test_resolve_role_for_each_member_kind():
    project, owner, admin, member = _project()
    assert resolve_role(project, owner) is ProjectRole.OWNER
    assert resolve_role(project, admin) is ProjectRole.ADMIN
    assert resolve_role(project, member) is ProjectRole.MEMBER


def test_resolve_role_absent_user_is_none():
    project, *_ = _project()
    assert resolve_role(project, uuid4()) is ProjectRole.NONE
    assert not is_member(project, uuid4())


def test_owner_wins_over_member_entry():
    owner = uuid4()
    project = Project(owner, [Member(owner, "member")])
    assert resolve_role(project, owner) is ProjectRole.OWNER


def test_unknown_stored_role_is_loud():
    user = uuid4()
    project = Project(uuid4(), [Member(user, "superuser")])
    with pytest.raises(ValueError):
        resolve_role(project, user)


def test_find_member_returns_entry():
    project, _, admin, _ = _project()
    assert find_member(project, admin).role == "admin"
    assert find_member(project, uuid4()) is None


# ─── check_owner_invariant ──────────────────────────────────────

def test_owner_invariant_holds_for_consistent_project():
    project, *_ = _project()
    check_owner_invariant(project)


def test_owner_invariant_rejects_missing_owner_entry():
    owner = uuid4()
    project = Project(owner, [Member(uuid4(), "member")])
    with pytest.raises(InvariantViolationError):
        check_owner_invariant(project)


def test_owner_invariant_rejects_two_owner_entries():
    owner = uuid4()
    project = Project(owner, [Member(owner, "owner"), Member(uuid4(), "owner")])
    with pytest.raises(InvariantViolationError) as exc:
        check_owner_invariant(project)
    assert exc.value.http_status == 500


def test_owner_invariant_rejects_entry_for_other_user():
    project = Project(uuid4(), [Member(uuid4(), "owner")])
    with pytest.raises(InvariantViolationError):
        check_owner_invariant(project)
