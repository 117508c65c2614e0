"""Authorization Policy — maps (role, action) to allow/deny.

Invariants:
    - authorize is PURE: no IO, no exceptions, deterministic
    - _POLICY is the single source of truth for the role table
    - Two exceptions are evaluated outside the table:
        * CANCEL_INVITATION: the invitation's sender is allowed regardless of role
        * DELETE_TASK: the task's creator is allowed even with role NONE
    - require() is the only place a deny becomes ForbiddenError

Design Decisions:
    - Asymmetries kept as observed: ADD_MEMBER admits admin, REMOVE_MEMBER is owner-only;
      UPDATE_PROJECT admits admin, DELETE_PROJECT is owner-only
    - CANCEL_INVITATION is owner-or-sender; an admin who did not send it is denied
"""

from enum import Enum

from app.core.domain_types import ProjectRole
from app.core.errors import ErrorContext, ForbiddenError


class Action(str, Enum):
    VIEW_PROJECT = "view_project"
    UPDATE_PROJECT = "update_project"
    DELETE_PROJECT = "delete_project"
    ADD_MEMBER = "add_member"
    REMOVE_MEMBER = "remove_member"
    SEND_INVITATION = "send_invitation"
    CANCEL_INVITATION = "cancel_invitation"
    VIEW_PROJECT_INVITATIONS = "view_project_invitations"
    VIEW_TASK = "view_task"
    CREATE_TASK = "create_task"
    UPDATE_TASK = "update_task"
    REORDER_TASKS = "reorder_tasks"
    DELETE_TASK = "delete_task"
    COMMENT_TASK = "comment_task"


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


_OWNER = frozenset({ProjectRole.OWNER})
_ADMINS = frozenset({ProjectRole.OWNER, ProjectRole.ADMIN})
_MEMBERS = frozenset({ProjectRole.OWNER, ProjectRole.ADMIN, ProjectRole.MEMBER})

_POLICY: dict[Action, frozenset[ProjectRole]] = {
    Action.VIEW_PROJECT: _MEMBERS,
    Action.UPDATE_PROJECT: _ADMINS,
    Action.DELETE_PROJECT: _OWNER,
    Action.ADD_MEMBER: _ADMINS,
    Action.REMOVE_MEMBER: _OWNER,
    Action.SEND_INVITATION: _ADMINS,
    Action.CANCEL_INVITATION: _OWNER,
    Action.VIEW_PROJECT_INVITATIONS: _ADMINS,
    Action.VIEW_TASK: _MEMBERS,
    Action.CREATE_TASK: _MEMBERS,
    Action.UPDATE_TASK: _MEMBERS,
    Action.REORDER_TASKS: _MEMBERS,
    Action.DELETE_TASK: _MEMBERS,
    Action.COMMENT_TASK: _MEMBERS,
}


def allowed_roles(action: Action) -> frozenset[ProjectRole]:
    """Roles the table admits for action (exceptions not included)."""
    return _POLICY[action]


def authorize(
    role: ProjectRole,
    action: Action,
    *,
    is_creator: bool = False,
    is_sender: bool = False,
) -> Decision:
    """Decide whether role may perform action.

    is_creator only matters for DELETE_TASK, is_sender only for CANCEL_INVITATION.
    """
    if role in _POLICY[action]:
        return Decision.ALLOW
    if action is Action.DELETE_TASK and is_creator:
        return Decision.ALLOW
    if action is Action.CANCEL_INVITATION and is_sender:
        return Decision.ALLOW
    return Decision.DENY


def require(
    role: ProjectRole,
    action: Action,
    *,
    is_creator: bool = False,
    is_sender: bool = False,
    context: ErrorContext | None = None,
) -> None:
    """Raise ForbiddenError unless authorize() allows."""
    decision = authorize(
        role, action, is_creator=is_creator, is_sender=is_sender,
    )
    if decision is Decision.DENY:
        raise ForbiddenError(action.value, context)
