"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection
    - Every repository offers the generic surface: get_by_id, find, count, create, update, delete

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but the core functions that consume their results are never async themselves
    - get_view(..., resolve=...) replaces populate-on-read joins: callers name the
      associations to embed and receive a denormalized dict; core keeps plain ids
    - Conditional transitions (transition_status, delete_if_pending) return bool so
      racing operations observe "nobody home" instead of double-applying
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Protocol, Sequence
from uuid import UUID


class Repository(Protocol):
    """Generic entity repository surface."""
    async def get_by_id(self, entity_id: UUID) -> Any | None: ...
    async def find(
        self,
        filters: dict[str, Any] | None = None,
        order_by: Sequence[str] = (),
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Any]: ...
    async def count(self, filters: dict[str, Any] | None = None) -> int: ...
    async def create(self, data: dict[str, Any]) -> Any: ...
    async def update(self, entity_id: UUID, changes: dict[str, Any]) -> bool: ...
    async def delete(self, entity_id: UUID) -> bool: ...


class UserRepository(Repository, Protocol):
    """Contract for user persistence and the per-user project set."""
    async def get_by_email(self, email: str) -> Any | None: ...
    async def add_project(self, user_id: UUID, project_id: UUID) -> None: ...
    async def remove_project(self, user_id: UUID, project_id: UUID) -> None: ...
    async def project_ids(self, user_id: UUID) -> set[UUID]: ...


class ProjectRepository(Repository, Protocol):
    """Contract for project persistence including the member list."""
    async def add_member(
        self, project: Any, user_id: UUID, role: str, joined_at: datetime,
    ) -> Any: ...
    async def remove_member(self, project: Any, user_id: UUID) -> bool: ...
    async def find_for_user(
        self,
        user_id: UUID,
        status: str | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Any]: ...
    async def count_for_user(
        self, user_id: UUID, status: str | None = None, search: str | None = None,
    ) -> int: ...
    async def delete_cascade(self, project_id: UUID) -> None: ...
    async def get_view(
        self, project_id: UUID, resolve: Iterable[str] = (),
    ) -> dict | None: ...


class TaskRepository(Repository, Protocol):
    """Contract for task persistence and board queries."""
    async def max_position(self, project_id: UUID) -> int | None: ...
    async def find_board(
        self,
        project_id: UUID,
        filters: dict[str, Any] | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Any]: ...
    async def apply_patch(
        self, task_id: UUID, patch: dict[str, Any], project_id: UUID | None = None,
    ) -> bool: ...
    async def add_comment(
        self, task: Any, user_id: UUID, content: str, created_at: datetime,
    ) -> Any: ...
    async def get_view(
        self, task_id: UUID, resolve: Iterable[str] = (),
    ) -> dict | None: ...
    async def views(
        self, tasks: list[Any], resolve: Iterable[str] = (),
    ) -> list[dict]: ...


class InvitationRepository(Repository, Protocol):
    """Contract for invitation persistence and conditional lifecycle writes."""
    async def find_pending(
        self, project_id: UUID, invited_user_id: UUID,
    ) -> Any | None: ...
    async def transition_status(
        self,
        invitation_id: UUID,
        from_status: str,
        to_status: str,
        responded_at: datetime | None = None,
    ) -> bool: ...
    async def delete_if_pending(self, invitation_id: UUID) -> bool: ...
    async def expire_stale(
        self,
        now: datetime,
        project_id: UUID | None = None,
        invited_user_id: UUID | None = None,
    ) -> int: ...
    async def get_view(
        self, invitation_id: UUID, resolve: Iterable[str] = (),
    ) -> dict | None: ...
    async def views(
        self, invitations: list[Any], resolve: Iterable[str] = (),
    ) -> list[dict]: ...


@dataclass
class Repositories:
    """Bundle of repositories sharing one unit of work."""
    users: UserRepository
    projects: ProjectRepository
    tasks: TaskRepository
    invitations: InvitationRepository
