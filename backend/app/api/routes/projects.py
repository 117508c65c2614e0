"""Project Routes — project CRUD, direct membership and the project's task board.

Invariants:
    - Routes never decide policy; services raise ForbiddenError/NotFound and the
      global handlers shape the response
    - Bulk reorder answers 200 with per-item results even when some items fail
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import (
    get_current_user_id, get_membership_service, get_task_board_service,
)
from app.core.domain_types import Priority, ProjectStatus, TaskStatus
from app.schemas.project import MemberAdd, ProjectCreate, ProjectUpdate
from app.schemas.task import TaskCreate, TaskReorder
from app.services.membership_service import MembershipService
from app.services.task_board_service import TaskBoardService

router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


# ─── Projects ───────────────────────────────────────────────────

@router.get("")
async def list_projects(
    status_filter: ProjectStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1),
    limit: int | None = Query(None),
    user_id: UUID = Depends(get_current_user_id),
    service: MembershipService = Depends(get_membership_service),
):
    return await service.list_projects(user_id, status_filter, search, page, limit)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    body: ProjectCreate,
    user_id: UUID = Depends(get_current_user_id),
    service: MembershipService = Depends(get_membership_service),
):
    project = await service.create_project(
        user_id, body.name, body.description, body.color, body.priority, body.deadline,
    )
    return {"project": project}


@router.get("/{project_id}")
async def get_project(
    project_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: MembershipService = Depends(get_membership_service),
):
    return {"project": await service.get_project(user_id, project_id)}


@router.put("/{project_id}")
async def update_project(
    project_id: UUID,
    body: ProjectUpdate,
    user_id: UUID = Depends(get_current_user_id),
    service: MembershipService = Depends(get_membership_service),
):
    changes = body.model_dump(exclude_unset=True)
    return {"project": await service.update_project(user_id, project_id, changes)}


@router.delete("/{project_id}")
async def delete_project(
    project_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: MembershipService = Depends(get_membership_service),
):
    await service.delete_project(user_id, project_id)
    return {"message": "Project deleted successfully"}


# ─── Members ────────────────────────────────────────────────────

@router.post("/{project_id}/members")
async def add_member(
    project_id: UUID,
    body: MemberAdd,
    user_id: UUID = Depends(get_current_user_id),
    service: MembershipService = Depends(get_membership_service),
):
    project = await service.add_member(
        user_id, project_id, email=body.email, user_id=body.user_id, role=body.role,
    )
    return {"project": project}


@router.delete("/{project_id}/members/{member_id}")
async def remove_member(
    project_id: UUID,
    member_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: MembershipService = Depends(get_membership_service),
):
    await service.remove_member(user_id, project_id, member_id)
    return {"message": "Member removed successfully"}


# ─── Board ──────────────────────────────────────────────────────

@router.get("/{project_id}/tasks")
async def list_tasks(
    project_id: UUID,
    status_filter: TaskStatus | None = Query(None, alias="status"),
    assigned_to_id: UUID | None = Query(None),
    priority: Priority | None = Query(None),
    page: int = Query(1),
    limit: int | None = Query(None),
    user_id: UUID = Depends(get_current_user_id),
    service: TaskBoardService = Depends(get_task_board_service),
):
    return await service.list_tasks(
        user_id, project_id, status_filter, assigned_to_id, priority, page, limit,
    )


@router.post("/{project_id}/tasks", status_code=status.HTTP_201_CREATED)
async def create_task(
    project_id: UUID,
    body: TaskCreate,
    user_id: UUID = Depends(get_current_user_id),
    service: TaskBoardService = Depends(get_task_board_service),
):
    task = await service.create_task(
        user_id, project_id, body.title, body.description, body.priority,
        body.assigned_to_id, body.due_date, body.tags,
    )
    return {"task": task}


@router.put("/{project_id}/tasks/reorder")
async def reorder_tasks(
    project_id: UUID,
    body: TaskReorder,
    user_id: UUID = Depends(get_current_user_id),
    service: TaskBoardService = Depends(get_task_board_service),
):
    results = await service.bulk_reorder_tasks(
        user_id, project_id, [item.to_item() for item in body.tasks],
    )
    return {
        "results": [
            {"task_id": str(r.task_id), "ok": r.ok, "error_code": r.error_code}
            for r in results
        ],
        "updated": sum(1 for r in results if r.ok),
        "failed": sum(1 for r in results if not r.ok),
    }
