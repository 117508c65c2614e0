"""Service test fixtures — async DB, seeded users/projects, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test session factory
    - db_manager patched for code that opens sessions directly (expiry sweeper)
    - Services under test share one session and a controllable clock

Design Decisions:
    - SQLite in-memory: fast, no external dependency; the partial unique index is
      created through sqlite_where so duplicate-pending protection is exercised
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from app.config import Settings
from app.core.domain_types import InvitableRole
from app.db.base import Base
from app.infrastructure.database import get_db, DatabaseSessionManager
from app.infrastructure.repositories import build_sql_repositories
import app.infrastructure.database as db_module
import app.models  # noqa: F401
from app.main import app
from app.services.invitation_service import InvitationService
from app.services.membership_service import MembershipService
from app.services.task_board_service import TaskBoardService
from app.services.user_service import UserService

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock; advance() moves time forward."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def session_manager(test_engine, test_session_factory):
    """Module-level db_manager pointed at the test engine for the test's duration."""
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager
    yield fake_manager
    db_module.db_manager = original_manager


@pytest.fixture
async def client(test_session_factory, session_manager):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


# ─── Services ───────────────────────────────────────────────────

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(database_url="sqlite+aiosqlite:///:memory:")


@pytest.fixture
def repos(test_db):
    return build_sql_repositories(test_db)


@pytest.fixture
def users(test_db, repos):
    return UserService(test_db, repos)


@pytest.fixture
def membership(test_db, repos, settings, clock):
    return MembershipService(test_db, repos, settings, clock)


@pytest.fixture
def board(test_db, repos, settings, clock):
    return TaskBoardService(test_db, repos, settings, clock)


@pytest.fixture
def invitations(test_db, repos, settings, clock):
    return InvitationService(test_db, repos, settings, clock)


# ─── Seed data ──────────────────────────────────────────────────

@pytest.fixture
async def alice(users):
    return await users.register_user("Alice", "alice@example.com")


@pytest.fixture
async def bob(users):
    return await users.register_user("Bob", "bob@example.com")


@pytest.fixture
async def carol(users):
    return await users.register_user("Carol", "carol@example.com")


@pytest.fixture
async def dave(users):
    return await users.register_user("Dave", "dave@example.com")


@pytest.fixture
async def project(membership, alice, bob, carol):
    """Alice owns it, Bob is admin, Carol is member; Dave (if seeded) is outside."""
    owner_id = UUID(alice["id"])
    view = await membership.create_project(
        owner_id, "Launch", "Ship the launch checklist",
    )
    project_id = UUID(view["id"])
    await membership.add_member(
        owner_id, project_id, email=bob["email"], role=InvitableRole.ADMIN,
    )
    await membership.add_member(owner_id, project_id, email=carol["email"])
    return await membership.get_project(owner_id, project_id)
