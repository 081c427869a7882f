from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .model import AttendanceRecord, NewRecord


class RecordStore(Protocol):
    """Durable, append-only storage of attendance events.

    Every write commits before returning, so the next read observes it.
    """

    async def open(self) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError

    async def append(self, record: NewRecord) -> AttendanceRecord:
        raise NotImplementedError

    async def get(self, record_id: int) -> AttendanceRecord:
        raise NotImplementedError

    async def mark_synced(self, record_id: int, synced_at: datetime) -> AttendanceRecord:
        raise NotImplementedError

    async def list_pending(self) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    async def list_all(self) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    async def count_pending(self) -> int:
        raise NotImplementedError
