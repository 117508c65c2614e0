"""Invitation Expiry Sweeper — tests for the periodic pending -> expired pass.

Tests cover:
    - run_once expires past-due pending rows through its own session
    - run_once without an initialized database raises RuntimeError
    - the loop logs a failed pass and keeps running, then recovers
    - stop() is idempotent and never re-raises a failed pass
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

import app.infrastructure.database as db_module
from app.infrastructure.invitation_expiry import InvitationExpirySweeper
from app.models.invitation import Invitation


def _id(view: dict) -> UUID:
    return UUID(view["id"])


async def _status(session_factory, invitation_id: UUID) -> str:
    async with session_factory() as session:
        invitation = await session.get(Invitation, invitation_id)
        return invitation.status


@pytest.fixture
def past_clock(clock):
    """Sends happen 30 days before the wall clock the sweeper reads."""
    clock.now = datetime.now(timezone.utc) - timedelta(days=30)
    return clock


async def test_run_once_expires_past_due(
    invitations, session_manager, test_session_factory, project, alice, dave, past_clock,
):
    sent = await invitations.send_invitation(_id(alice), _id(project), dave["email"])

    assert await InvitationExpirySweeper(60).run_once() == 1
    assert await _status(test_session_factory, _id(sent)) == "expired"
    assert await InvitationExpirySweeper(60).run_once() == 0


async def test_run_once_leaves_fresh_invitations(
    invitations, session_manager, test_session_factory, project, alice, dave, clock,
):
    clock.now = datetime.now(timezone.utc)
    sent = await invitations.send_invitation(_id(alice), _id(project), dave["email"])

    assert await InvitationExpirySweeper(60).run_once() == 0
    assert await _status(test_session_factory, _id(sent)) == "pending"


async def test_run_once_requires_database(monkeypatch):
    monkeypatch.setattr(db_module, "db_manager", None)
    with pytest.raises(RuntimeError, match="Database not initialized"):
        await InvitationExpirySweeper(60).run_once()


async def test_loop_survives_failed_pass_and_recovers(
    invitations, session_manager, test_session_factory, monkeypatch, caplog,
    project, alice, dave, past_clock,
):
    sent = await invitations.send_invitation(_id(alice), _id(project), dave["email"])
    monkeypatch.setattr(db_module, "db_manager", None)
    sweeper = InvitationExpirySweeper(0.01)

    with caplog.at_level(logging.ERROR, logger="app.infrastructure.invitation_expiry"):
        sweeper.start()
        await asyncio.sleep(0.05)
        assert sweeper.running
        assert "Invitation sweep failed unexpectedly" in caplog.text

        monkeypatch.setattr(db_module, "db_manager", session_manager)
        await asyncio.sleep(0.1)
        assert sweeper.running
        await sweeper.stop()

    assert not sweeper.running
    assert await _status(test_session_factory, _id(sent)) == "expired"


async def test_stop_is_idempotent(monkeypatch):
    monkeypatch.setattr(db_module, "db_manager", None)
    sweeper = InvitationExpirySweeper(0.01)
    await sweeper.stop()

    sweeper.start()
    await asyncio.sleep(0.03)
    await sweeper.stop()
    await sweeper.stop()
    assert not sweeper.running
