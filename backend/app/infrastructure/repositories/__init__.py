"""SQLAlchemy Repositories — shell implementations of core/repository_protocols.py.

Invariants:
    - build_sql_repositories binds every repository to the same AsyncSession

Design Decisions:
    - One file per entity; generic CRUD in base.py, JSON views in views.py
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.repository_protocols import Repositories
from app.infrastructure.repositories.invitation_repository import SqlInvitationRepository
from app.infrastructure.repositories.project_repository import SqlProjectRepository
from app.infrastructure.repositories.task_repository import SqlTaskRepository
from app.infrastructure.repositories.user_repository import SqlUserRepository


def build_sql_repositories(db: AsyncSession) -> Repositories:
    return Repositories(
        users=SqlUserRepository(db),
        projects=SqlProjectRepository(db),
        tasks=SqlTaskRepository(db),
        invitations=SqlInvitationRepository(db),
    )
