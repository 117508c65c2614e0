"""User Routes — registration and the caller's own account (read, profile, deactivate)."""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_current_user_id, get_user_service
from app.schemas.user import UserCreate, UserUpdate
from app.services.user_service import UserService

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def register_user(
    body: UserCreate, service: UserService = Depends(get_user_service),
):
    return {"user": await service.register_user(body.name, body.email)}


@router.get("/me")
async def get_me(
    user_id: UUID = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service),
):
    return {"user": await service.get_user(user_id)}


@router.put("/me")
async def update_me(
    body: UserUpdate,
    user_id: UUID = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service),
):
    return {"user": await service.update_profile(user_id, body.name, body.email)}


@router.put("/me/deactivate")
async def deactivate_me(
    user_id: UUID = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service),
):
    return {"user": await service.deactivate_user(user_id)}
