"""User Repository — users and the per-user project set."""

from uuid import UUID

from sqlalchemy import delete, select

from app.infrastructure.repositories.base import SqlRepository
from app.models.user import User, UserProject


class SqlUserRepository(SqlRepository[User]):
    model = User

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.email == email.strip().lower()),
        )
        return result.scalar_one_or_none()

    async def add_project(self, user_id: UUID, project_id: UUID) -> None:
        """Idempotent: a project appears at most once in a user's set."""
        existing = await self.db.get(UserProject, (user_id, project_id))
        if existing is None:
            self.db.add(UserProject(user_id=user_id, project_id=project_id))
            await self.db.flush()

    async def remove_project(self, user_id: UUID, project_id: UUID) -> None:
        await self.db.execute(
            delete(UserProject)
            .where(UserProject.user_id == user_id)
            .where(UserProject.project_id == project_id)
            .execution_options(synchronize_session="fetch"),
        )

    async def project_ids(self, user_id: UUID) -> set[UUID]:
        result = await self.db.execute(
            select(UserProject.project_id).where(UserProject.user_id == user_id),
        )
        return set(result.scalars().all())
