"""Invitation Expiry Sweeper — periodic pending -> expired pass over past-due rows.

Invariants:
    - Only pending rows whose expires_at is in the past change; terminal rows untouched
    - Each pass uses its own session; a failed pass is logged and the loop continues
    - stop() cancels the loop and waits for it to finish

Design Decisions:
    - Optional: respond-time and list-time expiry already keep reads correct, the
      sweep only keeps stored statuses tidy
"""

import asyncio
import logging

from app.core.errors import TaskBoardError
from app.infrastructure import database
from app.infrastructure.repositories import build_sql_repositories
from app.services.invitation_service import InvitationService

logger = logging.getLogger(__name__)


class InvitationExpirySweeper:
    def __init__(self, interval_seconds: float):
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    async def run_once(self) -> int:
        if database.db_manager is None:
            raise RuntimeError("Database not initialized")
        async with database.db_manager.session() as db:
            service = InvitationService(db, build_sql_repositories(db))
            return await service.expire_stale_invitations()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.run_once()
            except TaskBoardError as e:
                logger.error(
                    f"Invitation sweep failed: {e.message}",
                    extra={"error_code": e.code},
                )
            except Exception as e:
                logger.exception(f"Invitation sweep failed unexpectedly: {e}")

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._loop())
            logger.info(f"Invitation sweep every {self.interval_seconds}s")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            return
        except Exception as e:
            logger.error(f"Invitation sweep ended with error: {e}")
