"""Tests for the per-request read session scope."""

import asyncio

import pytest

from authz.infrastructure.persistence import database


class _RecordingSession:
    def __init__(self) -> None:
        self.statements: list[str] = []
        self.closed = False

    async def execute(self, statement, *args, **kwargs):
        self.statements.append(statement)
        return statement

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def sessions(monkeypatch: pytest.MonkeyPatch) -> list[_RecordingSession]:
    created: list[_RecordingSession] = []

    def maker() -> _RecordingSession:
        session = _RecordingSession()
        created.append(session)
        return session

    monkeypatch.setattr(database, "_session_factory", lambda: maker)
    return created


async def test_unused_scope_opens_no_session(sessions: list[_RecordingSession]) -> None:
    async with database.read_session_scope():
        pass
    assert sessions == []


async def test_same_task_shares_one_session(sessions: list[_RecordingSession]) -> None:
    async with database.read_session_scope() as scoped:
        await scoped.execute("a")
        await scoped.execute("b")
    assert len(sessions) == 1
    assert sessions[0].statements == ["a", "b"]
    assert sessions[0].closed is True


async def test_concurrent_reads_get_separate_sessions(sessions: list[_RecordingSession]) -> None:
    async with database.read_session_scope() as scoped:
        await asyncio.gather(scoped.execute("grants"), scoped.execute("groups"))
    assert len(sessions) == 2
    assert all(s.closed for s in sessions)
