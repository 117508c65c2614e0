"""Task Routes — single-task reads, updates, status moves, deletion and comments."""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_current_user_id, get_task_board_service
from app.schemas.task import CommentCreate, TaskStatusUpdate, TaskUpdate
from app.services.task_board_service import TaskBoardService

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


@router.get("/{task_id}")
async def get_task(
    task_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: TaskBoardService = Depends(get_task_board_service),
):
    return {"task": await service.get_task(user_id, task_id)}


@router.put("/{task_id}")
async def update_task(
    task_id: UUID,
    body: TaskUpdate,
    user_id: UUID = Depends(get_current_user_id),
    service: TaskBoardService = Depends(get_task_board_service),
):
    return {"task": await service.update_task(user_id, task_id, body.changes())}


@router.put("/{task_id}/status")
async def set_task_status(
    task_id: UUID,
    body: TaskStatusUpdate,
    user_id: UUID = Depends(get_current_user_id),
    service: TaskBoardService = Depends(get_task_board_service),
):
    task = await service.set_task_status_and_position(
        user_id, task_id, body.status, body.position,
    )
    return {"task": task}


@router.delete("/{task_id}")
async def delete_task(
    task_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: TaskBoardService = Depends(get_task_board_service),
):
    await service.delete_task(user_id, task_id)
    return {"message": "Task deleted successfully"}


@router.post("/{task_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_comment(
    task_id: UUID,
    body: CommentCreate,
    user_id: UUID = Depends(get_current_user_id),
    service: TaskBoardService = Depends(get_task_board_service),
):
    return {"task": await service.add_comment(user_id, task_id, body.content)}
