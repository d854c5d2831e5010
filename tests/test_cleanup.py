import asyncio
from contextlib import suppress
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from conftest import FakeConversationRepository, FakeMessageRepository
from src.application.commands.maintenance import (
    CleanupOldDataCommand,
    CleanupOldDataHandler,
    SweepInProcessStateCommand,
    SweepInProcessStateHandler,
    run_periodic_sweep,
)
from src.domain.entities.message import Message
from src.domain.value_objects.conversation_id import ConversationId
from src.utils.rate_limiter import RateLimiter
from src.utils.sessions import SessionManager

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _messages_repo(ages_in_days):
    repo = FakeMessageRepository(FakeConversationRepository())
    for i, age in enumerate(ages_in_days):
        repo.messages.append(
            Message(
                id=f"m{i}",
                conversation_id=ConversationId("c" * 32),
                role="user",
                content=f"message {i}",
                timestamp=NOW - timedelta(days=age),
            )
        )
    return repo


def test_cleanup_removes_messages_past_retention():
    repo = _messages_repo([1, 30, 89, 91, 400])
    handler = CleanupOldDataHandler(repo)

    report = asyncio.run(handler.execute(CleanupOldDataCommand(retention_days=90, now=NOW)))

    assert report.messages_deleted == 2
    assert report.cutoff == NOW - timedelta(days=90)
    assert [m.id for m in repo.messages] == ["m0", "m1", "m2"]


def _stale_state():
    clock = [0.0]
    sessions = SessionManager(clock=lambda: clock[0])
    limiter = RateLimiter(clock=lambda: clock[0])
    session_id = sessions.create_session("u1")
    limiter.check_rate_limit("auth:1.2.3.4", 10, 60_000)
    clock[0] = 3600.0
    return sessions, limiter, session_id


def test_sweep_expires_sessions_and_rate_windows():
    sessions, limiter, session_id = _stale_state()
    handler = SweepInProcessStateHandler(sessions, limiter)

    report = asyncio.run(handler.execute(SweepInProcessStateCommand()))

    assert report.sessions_expired == 1
    assert report.rate_limit_entries_removed == 1
    assert sessions.get_session(session_id) is None


def test_periodic_sweep_runs_until_cancelled():
    sessions, limiter, session_id = _stale_state()
    handler = SweepInProcessStateHandler(sessions, limiter)

    async def run():
        task = asyncio.create_task(run_periodic_sweep(handler, 0))
        for _ in range(5):
            await asyncio.sleep(0)
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        return task

    task = asyncio.run(run())

    assert task.cancelled()
    assert sessions.get_session(session_id) is None
    assert len(limiter) == 0


def test_app_lifespan_owns_the_sweep_task(app):
    with TestClient(app):
        task = app.state.sweep_task
        assert not task.done()

    assert task.done()


def test_cleanup_rejects_zero_retention():
    handler = CleanupOldDataHandler(_messages_repo([]))

    with pytest.raises(ValueError):
        asyncio.run(handler.execute(CleanupOldDataCommand(retention_days=0)))
