"""Domain Types — closed enums shared by core, services and shell.

Invariants:
    - Every valid state is an Enum member — no raw string matching in core
    - ProjectRole.NONE exists only as a resolution result, never as a stored role

Design Decisions:
    - str Enums: values are the persisted column values and the JSON wire values
"""

from enum import Enum


# ─── Membership ──────────────────────────────────────────────────

class ProjectRole(str, Enum):
    """Effective role of a user inside one project."""
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    NONE = "none"


class InvitableRole(str, Enum):
    """Roles an invitation or a direct add may grant (owner is never granted)."""
    ADMIN = "admin"
    MEMBER = "member"


# ─── Projects ────────────────────────────────────────────────────

class ProjectStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class Priority(str, Enum):
    """Shared by projects and tasks."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ProjectColor(str, Enum):
    BLUE = "blue"
    GREEN = "green"
    RED = "red"
    PURPLE = "purple"
    YELLOW = "yellow"
    INDIGO = "indigo"
    PINK = "pink"
    GRAY = "gray"


# ─── Tasks ───────────────────────────────────────────────────────

class TaskStatus(str, Enum):
    """Board lanes. A lane is the status grouping, not a separate stored field."""
    TODO = "todo"
    IN_PROGRESS = "inprogress"
    COMPLETED = "completed"


# ─── Invitations ─────────────────────────────────────────────────

class InvitationStatus(str, Enum):
    """Invitation lifecycle states. Everything except PENDING is terminal."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not InvitationStatus.PENDING


class InvitationResponse(str, Enum):
    ACCEPT = "accept"
    DECLINE = "decline"
