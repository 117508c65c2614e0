"""Request Dependencies — caller identity and per-request service wiring.

Invariants:
    - One AsyncSession per request: identity lookup and the service share it
    - Unknown, malformed or deactivated identities are rejected with ForbiddenError
      before any route logic runs

Design Decisions:
    - Identity comes from the X-User-Id header; token authentication sits in front
      of this service and is not handled here
"""

import logging
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.errors import ErrorContext, ForbiddenError
from app.core.repository_protocols import Repositories
from app.infrastructure.database import get_db
from app.infrastructure.repositories import build_sql_repositories
from app.services.invitation_service import InvitationService
from app.services.membership_service import MembershipService
from app.services.task_board_service import TaskBoardService
from app.services.user_service import UserService

logger = logging.getLogger(__name__)


def get_repositories(db: AsyncSession = Depends(get_db)) -> Repositories:
    return build_sql_repositories(db)


async def get_current_user_id(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    repos: Repositories = Depends(get_repositories),
) -> UUID:
    """Resolve the acting user; inactive users cannot act."""
    if not x_user_id:
        raise ForbiddenError("access this resource")
    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise ForbiddenError("access this resource")
    user = await repos.users.get_by_id(user_id)
    if user is None or not user.is_active:
        logger.warning(
            "Rejected identity", extra={"user_id": x_user_id, "action": "identify"},
        )
        raise ForbiddenError(
            "access this resource", ErrorContext(user_id=str(user_id)),
        )
    return user_id


def get_user_service(
    db: AsyncSession = Depends(get_db),
    repos: Repositories = Depends(get_repositories),
) -> UserService:
    return UserService(db, repos)


def get_membership_service(
    db: AsyncSession = Depends(get_db),
    repos: Repositories = Depends(get_repositories),
) -> MembershipService:
    return MembershipService(db, repos, get_settings())


def get_task_board_service(
    db: AsyncSession = Depends(get_db),
    repos: Repositories = Depends(get_repositories),
) -> TaskBoardService:
    return TaskBoardService(db, repos, get_settings())


def get_invitation_service(
    db: AsyncSession = Depends(get_db),
    repos: Repositories = Depends(get_repositories),
) -> InvitationService:
    return InvitationService(db, repos, get_settings())
