"""Invitation ORM — a pending or resolved offer to join a project.

Invariants:
    - role in {admin, member}; status in {pending, accepted, declined, expired}
    - expires_at = created_at + invitation TTL (7 days by default)
    - At most one pending row per (project_id, invited_user_id): enforced by a
      partial unique index, in addition to the service-level check
    - Terminal rows are immutable; cancellation deletes the row

Design Decisions:
    - (invited_user_id, status) index serves the inbox listing
    - expires_at index serves the expiry sweep
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Invitation(Base):
    """Invitation entity."""
    __tablename__ = "invitations"
    __table_args__ = (
        Index("ix_invitations_invited_user_status", "invited_user_id", "status"),
        Index("ix_invitations_project", "project_id"),
        Index("ix_invitations_expires_at", "expires_at"),
        Index(
            "uq_invitations_pending_pair", "project_id", "invited_user_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    invited_by_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False,
    )
    invited_user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False,
    )
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="member",
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending",
    )
    message: Mapped[str | None] = mapped_column(String(200), nullable=True)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    responded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
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
