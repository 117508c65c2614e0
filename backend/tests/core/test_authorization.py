"""Authorization Policy — tests for the role table and its two exceptions.

Tests cover:
    - every (action, role) cell of the policy table
    - NONE is denied everything except via the creator/sender exceptions
    - DELETE_TASK creator exception, CANCEL_INVITATION sender exception
    - require() raises ForbiddenError with the action in the message
"""

import pytest

from app.core.authorization import (
    Action, Decision, allowed_roles, authorize, require,
)
from app.core.domain_types import ProjectRole
from app.core.errors import ErrorContext, ForbiddenError

OWNER, ADMIN, MEMBER, NONE = (
    ProjectRole.OWNER, ProjectRole.ADMIN, ProjectRole.MEMBER, ProjectRole.NONE,
)

TABLE = {
    Action.VIEW_PROJECT: {OWNER, ADMIN, MEMBER},
    Action.UPDATE_PROJECT: {OWNER, ADMIN},
    Action.DELETE_PROJECT: {OWNER},
    Action.ADD_MEMBER: {OWNER, ADMIN},
    Action.REMOVE_MEMBER: {OWNER},
    Action.SEND_INVITATION: {OWNER, ADMIN},
    Action.CANCEL_INVITATION: {OWNER},
    Action.VIEW_PROJECT_INVITATIONS: {OWNER, ADMIN},
    Action.VIEW_TASK: {OWNER, ADMIN, MEMBER},
    Action.CREATE_TASK: {OWNER, ADMIN, MEMBER},
    Action.UPDATE_TASK: {OWNER, ADMIN, MEMBER},
    Action.REORDER_TASKS: {OWNER, ADMIN, MEMBER},
    Action.DELETE_TASK: {OWNER, ADMIN, MEMBER},
    Action.COMMENT_TASK: {OWNER, ADMIN, MEMBER},
}


@pytest.mark.parametrize("action", list(Action))
@pytest.mark.parametrize("role", list(ProjectRole))
def test_policy_table(action, role):
    expected = Decision.ALLOW if role in TABLE[action] else Decision.DENY
    assert authorize(role, action) is expected


def test_every_action_has_a_policy_row():
    assert set(TABLE) == set(Action)
    for action in Action:
        assert allowed_roles(action) == TABLE[action]


def test_admin_can_add_but_not_remove_members():
    assert authorize(ADMIN, Action.ADD_MEMBER) is Decision.ALLOW
    assert authorize(ADMIN, Action.REMOVE_MEMBER) is Decision.DENY


def test_admin_can_update_but_not_delete_project():
    assert authorize(ADMIN, Action.UPDATE_PROJECT) is Decision.ALLOW
    assert authorize(ADMIN, Action.DELETE_PROJECT) is Decision.DENY


# ─── Exceptions ─────────────────────────────────────────────────

def test_creator_may_delete_task_without_role():
    assert authorize(NONE, Action.DELETE_TASK, is_creator=True) is Decision.ALLOW
    assert authorize(NONE, Action.DELETE_TASK) is Decision.DENY


def test_creator_flag_does_not_leak_to_other_actions():
    assert authorize(NONE, Action.UPDATE_TASK, is_creator=True) is Decision.DENY


def test_sender_may_cancel_invitation():
    assert authorize(ADMIN, Action.CANCEL_INVITATION, is_sender=True) is Decision.ALLOW
    assert authorize(ADMIN, Action.CANCEL_INVITATION) is Decision.DENY
    assert authorize(MEMBER, Action.CANCEL_INVITATION) is Decision.DENY


# ─── require ────────────────────────────────────────────────────

def test_require_allows_silently():
    require(OWNER, Action.DELETE_PROJECT)


def test_require_raises_forbidden():
    with pytest.raises(ForbiddenError) as exc:
        require(MEMBER, Action.DELETE_PROJECT, context=ErrorContext(project_id="p1"))
    assert exc.value.http_status == 403
    assert exc.value.code == "FORBIDDEN"
    assert "delete project" in exc.value.message
    assert exc.value.context.project_id == "p1"
