"""Membership Resolver — total function from (project, user) to effective ProjectRole.

Invariants:
    - resolve_role is PURE and total: absence is ProjectRole.NONE, never an exception
    - owner_id wins over any member entry (owner check happens first)
    - check_owner_invariant raises InvariantViolationError, never repairs data

Design Decisions:
    - ProjectLike/MemberLike Protocols: ORM rows and plain dataclasses both resolve
    - Stored role strings are converted through ProjectRole(...) so an unknown value
      surfaces as a loud ValueError instead of silently resolving to NONE
"""

from typing import Iterable, Protocol
from uuid import UUID

from app.core.domain_types import ProjectRole
from app.core.errors import ErrorContext, InvariantViolationError


class MemberLike(Protocol):
    user_id: UUID
    role: str


class ProjectLike(Protocol):
    id: UUID
    owner_id: UUID
    members: Iterable[MemberLike]


def find_member(project: ProjectLike, user_id: UUID) -> MemberLike | None:
    """Return the member entry for user_id, or None."""
    for member in project.members:
        if member.user_id == user_id:
            return member
    return None


def resolve_role(project: ProjectLike, user_id: UUID) -> ProjectRole:
    """Effective role of user_id in project: owner, admin, member or none."""
    if project.owner_id == user_id:
        return ProjectRole.OWNER
    member = find_member(project, user_id)
    if member is None:
        return ProjectRole.NONE
    return ProjectRole(member.role)


def is_member(project: ProjectLike, user_id: UUID) -> bool:
    """True for owner and every member entry."""
    return resolve_role(project, user_id) is not ProjectRole.NONE


def check_owner_invariant(project: ProjectLike) -> None:
    """Exactly one member entry has role=owner and it is project.owner_id."""
    owner_entries = [
        m for m in project.members if m.role == ProjectRole.OWNER.value
    ]
    if len(owner_entries) != 1 or owner_entries[0].user_id != project.owner_id:
        raise InvariantViolationError(
            f"Project {project.id} has {len(owner_entries)} owner entries "
            "not matching owner_id",
            ErrorContext(project_id=str(project.id)),
        )
