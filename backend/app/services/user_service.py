"""User Service — registration, lookup, profile updates and deactivation."""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, ResourceNotFoundError
from app.core.repository_protocols import Repositories
from app.infrastructure.repositories.views import user_view

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: AsyncSession, repos: Repositories):
        self.db = db
        self.repos = repos

    async def register_user(self, name: str, email: str) -> dict:
        email = email.strip().lower()
        if await self.repos.users.get_by_email(email) is not None:
            raise ConflictError("Email already registered")
        try:
            user = await self.repos.users.create({"name": name.strip(), "email": email})
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Email already registered")
        logger.info("User registered", extra={"user_id": user.id})
        return user_view(user)

    async def get_user(self, user_id: UUID) -> dict:
        user = await self.repos.users.get_by_id(user_id)
        if user is None:
            raise ResourceNotFoundError("User", str(user_id))
        return user_view(user)

    async def update_profile(
        self, user_id: UUID, name: str | None = None, email: str | None = None,
    ) -> dict:
        """Change name and/or email; an email held by another user is a conflict."""
        user = await self.repos.users.get_by_id(user_id)
        if user is None:
            raise ResourceNotFoundError("User", str(user_id))
        changes: dict = {}
        if name is not None:
            changes["name"] = name.strip()
        if email is not None:
            email = email.strip().lower()
            if email != user.email:
                if await self.repos.users.get_by_email(email) is not None:
                    raise ConflictError("Email is already taken")
                changes["email"] = email
        if changes:
            try:
                await self.repos.users.update(user_id, changes)
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                raise ConflictError("Email is already taken")
            logger.info(
                f"Profile updated: {', '.join(sorted(changes))}",
                extra={"user_id": user_id},
            )
        return await self.get_user(user_id)

    async def deactivate_user(self, user_id: UUID) -> dict:
        """Soft removal: memberships stay, but the identity dependency rejects the user."""
        if not await self.repos.users.update(user_id, {"is_active": False}):
            raise ResourceNotFoundError("User", str(user_id))
        await self.db.commit()
        logger.info("User deactivated", extra={"user_id": user_id})
        return await self.get_user(user_id)
