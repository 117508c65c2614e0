"""Project ORM — aggregate root for members, tasks and invitations.

Invariants:
    - owner_id is immutable after creation
    - Exactly one ProjectMember row has role='owner' and its user_id == owner_id
    - (project_id, user_id) is unique among members
    - The project's task list is every Task row with this project_id

Design Decisions:
    - members loaded with selectin: every authorization check needs them
    - Tasks not mapped as a relationship: board queries go through TaskRepository with
      explicit ordering, and project deletion issues explicit DELETE statements
    - is_public and allow_member_invites are stored settings only; invitation and
      membership policy is decided by role, never by these flags
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Project(Base):
    """Project entity — owns its member list."""
    __tablename__ = "projects"
    __table_args__ = (
        Index("ix_projects_owner_status", "owner_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    color: Mapped[str] = mapped_column(
        String(20), nullable=False, default="blue",
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active",
    )
    priority: Mapped[str] = mapped_column(
        String(20), nullable=False, default="medium",
    )
    deadline: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    is_public: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    allow_member_invites: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True,
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    members: Mapped[list["ProjectMember"]] = relationship(
        "ProjectMember", back_populates="project",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="ProjectMember.joined_at",
    )


class ProjectMember(Base):
    """Membership entry (user, role, joined_at) inside one project."""
    __tablename__ = "project_members"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_members_user"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True,
    )
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="member",
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    project: Mapped["Project"] = relationship(
        "Project", back_populates="members",
    )
