from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Mapping

import pytest

from attendance_sync.core.exceptions import TransportFailure
from attendance_sync.database.connection import DBConfig, DatabaseConnection
from attendance_sync.records.sql_record_store import SQLRecordStore
from attendance_sync.remote.model import Identity
from attendance_sync.session.identity import SessionState


class FakeTransport:
    """Scripted remote: succeeds unless the submitted last name is listed in ``fail``."""

    def __init__(self):
        self.calls: list[Dict[str, str]] = []
        self.fail: Dict[str, str] = {}
        self.records: list[Dict[str, Any]] = []
        self.gates: Dict[int, asyncio.Event] = {}

    @property
    def submissions(self) -> list[Dict[str, str]]:
        return [c for c in self.calls if c.get("operation") != "fetch"]

    @property
    def fetches(self) -> list[Dict[str, str]]:
        return [c for c in self.calls if c.get("operation") == "fetch"]

    async def exchange(self, params: Mapping[str, str], *, correlation_id: str, timeout: float) -> Dict[str, Any]:
        self.calls.append(dict(params))
        call_no = len(self.calls)
        rows = list(self.records)

        gate = self.gates.get(call_no)
        if gate is not None:
            await gate.wait()

        if params.get("operation") == "fetch":
            return {"status": "success", "records": rows, "requestId": correlation_id}

        mode = self.fail.get(params.get("lastName", ""))
        if mode == "transport":
            raise TransportFailure("connection reset")
        if mode == "reject":
            return {"status": "error", "message": "Sheet rejected the row"}
        return {"status": "success", "message": "Recorded", "requestId": correlation_id}


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def fixed_now() -> datetime:
    return datetime(2024, 1, 10, 8, 0, 0, tzinfo=timezone.utc)


@pytest.fixture()
def identity() -> Identity:
    return Identity(uid="uid-123", email="timekeeper@example.edu")


@pytest.fixture()
def session(identity) -> SessionState:
    return SessionState(identity)


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'queue.db'}"


@pytest.fixture()
def sql_store(db_url) -> SQLRecordStore:
    """Unopened store; tests open it inside their own event loop."""

    return SQLRecordStore(DatabaseConnection(DBConfig(url=db_url)))
