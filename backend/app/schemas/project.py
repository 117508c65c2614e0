"""Project Schemas — create/update payloads and direct member addition.

Invariants:
    - name 2-100 chars, description 10-500 chars, both stripped
    - ProjectUpdate is partial: only fields present in the body reach the service
    - MemberAdd needs email or user_id (checked in the service)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.core.domain_types import InvitableRole, Priority, ProjectColor, ProjectStatus
from app.schemas.user import EMAIL_PATTERN


def _strip_required(v: str | None, field: str, minimum: int) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if len(v) < minimum:
        raise ValueError(f"{field} must be at least {minimum} characters")
    return v


class ProjectCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    description: str = Field(min_length=10, max_length=500)
    color: ProjectColor | None = None
    priority: Priority = Priority.MEDIUM
    deadline: datetime | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip_required(v, "name", 2)

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        return _strip_required(v, "description", 10)


class ProjectUpdate(BaseModel):
    """Partial update — dump with exclude_unset=True."""
    name: str | None = Field(None, min_length=2, max_length=100)
    description: str | None = Field(None, min_length=10, max_length=500)
    color: ProjectColor | None = None
    status: ProjectStatus | None = None
    priority: Priority | None = None
    deadline: datetime | None = None
    is_public: bool | None = None
    allow_member_invites: bool | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        return _strip_required(v, "name", 2)

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str | None) -> str | None:
        return _strip_required(v, "description", 10)


class MemberAdd(BaseModel):
    email: str | None = Field(None, max_length=255, pattern=EMAIL_PATTERN)
    user_id: UUID | None = None
    role: InvitableRole = InvitableRole.MEMBER
