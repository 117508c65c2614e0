"""View Serializers — ORM rows to denormalized, JSON-ready dicts.

Invariants:
    - Ids serialized as str, datetimes as ISO-8601 UTC
    - User references are embedded only when the caller resolves them; otherwise
      the view carries the bare id
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from app.core.invitation_rules import as_utc


def iso(value: datetime | None) -> str | None:
    return as_utc(value).isoformat() if value else None


def sid(value: UUID | None) -> str | None:
    return str(value) if value else None


def user_summary(user: Any) -> dict:
    return {"id": str(user.id), "name": user.name, "email": user.email}


def user_view(user: Any) -> dict:
    return {
        **user_summary(user),
        "is_active": user.is_active,
        "created_at": iso(user.created_at),
    }


def member_view(member: Any, users: dict[UUID, dict] | None = None) -> dict:
    view = {
        "user_id": str(member.user_id),
        "role": member.role,
        "joined_at": iso(member.joined_at),
    }
    if users is not None:
        view["user"] = users.get(member.user_id)
    return view


def project_view(project: Any) -> dict:
    return {
        "id": str(project.id),
        "name": project.name,
        "description": project.description,
        "color": project.color,
        "status": project.status,
        "priority": project.priority,
        "deadline": iso(project.deadline),
        "settings": {
            "is_public": project.is_public,
            "allow_member_invites": project.allow_member_invites,
        },
        "owner_id": str(project.owner_id),
        "member_count": len(project.members),
        "created_at": iso(project.created_at),
        "updated_at": iso(project.updated_at),
    }


def comment_view(comment: Any, users: dict[UUID, dict] | None = None) -> dict:
    view = {
        "id": str(comment.id),
        "user_id": str(comment.user_id),
        "content": comment.content,
        "created_at": iso(comment.created_at),
    }
    if users is not None:
        view["user"] = users.get(comment.user_id)
    return view


def task_view(task: Any) -> dict:
    return {
        "id": str(task.id),
        "project_id": str(task.project_id),
        "title": task.title,
        "description": task.description,
        "status": task.status,
        "priority": task.priority,
        "assigned_to_id": sid(task.assigned_to_id),
        "created_by_id": str(task.created_by_id),
        "due_date": iso(task.due_date),
        "tags": list(task.tags or []),
        "position": task.position,
        "comments": [comment_view(c) for c in task.comments],
        "created_at": iso(task.created_at),
        "updated_at": iso(task.updated_at),
    }


def invitation_view(invitation: Any) -> dict:
    return {
        "id": str(invitation.id),
        "project_id": str(invitation.project_id),
        "invited_by_id": str(invitation.invited_by_id),
        "invited_user_id": str(invitation.invited_user_id),
        "role": invitation.role,
        "status": invitation.status,
        "message": invitation.message,
        "expires_at": iso(invitation.expires_at),
        "responded_at": iso(invitation.responded_at),
        "created_at": iso(invitation.created_at),
    }
