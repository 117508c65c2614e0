"""TaskBoard API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map TaskBoardError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager; the expiry
      sweep runs only when invitation_sweep_interval_seconds > 0

Design Decisions:
    - Lifespan over @app.on_event: cleanup lives next to startup
    - Handlers live in app/api/error_handlers.py so this module only wires things
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.api.routes import health, invitations, projects, tasks, users
from app.config import get_settings
from app.infrastructure import database
from app.infrastructure.database import init_db
from app.infrastructure.invitation_expiry import InvitationExpirySweeper
from app.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    sweeper = None
    if settings.invitation_sweep_interval_seconds > 0:
        sweeper = InvitationExpirySweeper(settings.invitation_sweep_interval_seconds)
        sweeper.start()
    logger.info("TaskBoard API started")
    yield
    logger.info("TaskBoard API shutting down")
    if sweeper is not None:
        await sweeper.stop()
    if database.db_manager is not None:
        await database.db_manager.dispose()


app = FastAPI(title="TaskBoard API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(users.router)
app.include_router(projects.router)
app.include_router(tasks.router)
app.include_router(invitations.router)

register_error_handlers(app)
