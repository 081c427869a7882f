from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Sequence

from sqlalchemy import func, insert, select, update

from ..common.datetime_utils import utc_now
from ..core.enums import ActionCode, SyncStatus
from ..core.exceptions import RecordNotFound, StoreError
from ..database.connection import DatabaseConnection
from ..database.schema import attendance_records
from ..database.sql_base import db_transaction, fetchall, fetchone, from_db_datetime, to_db_datetime
from .capture import prepare_new_record
from .model import AttendanceRecord, NewRecord
from .repository import RecordStore

logger = logging.getLogger(__name__)

_t = attendance_records


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        first_name=r["first_name"],
        last_name=r["last_name"],
        timestamp=from_db_datetime(r["timestamp"]),
        action=ActionCode(r["action"]),
        action_label=r["action_label"],
        sync_status=SyncStatus(r["sync_status"]),
        created_at=from_db_datetime(r["created_at"]),
        synced_at=from_db_datetime(r.get("synced_at")),
    )


class SQLRecordStore(RecordStore):
    def __init__(self, conn_factory: DatabaseConnection, *, clock: Callable[[], datetime] = utc_now):
        self._conn_factory = conn_factory
        self._clock = clock

    async def open(self) -> None:
        await self._conn_factory.open()

    async def close(self) -> None:
        await self._conn_factory.close()

    async def append(self, record: NewRecord) -> AttendanceRecord:
        record = prepare_new_record(record)
        created_at = self._clock()
        async with db_transaction(self._conn_factory) as conn:
            result = await conn.execute(
                insert(_t).values(
                    first_name=record.first_name,
                    last_name=record.last_name,
                    timestamp=to_db_datetime(record.timestamp),
                    action=record.action.value,
                    action_label=record.action_label,
                    sync_status=SyncStatus.PENDING.value,
                    created_at=to_db_datetime(created_at),
                    synced_at=None,
                )
            )
            record_id = int(result.inserted_primary_key[0])

        logger.info("Stored record %s (%s) as pending", record_id, record.action.value)
        return AttendanceRecord(
            record_id=record_id,
            first_name=record.first_name,
            last_name=record.last_name,
            timestamp=record.timestamp,
            action=record.action,
            action_label=record.action_label,
            sync_status=SyncStatus.PENDING,
            created_at=from_db_datetime(to_db_datetime(created_at)),
        )

    async def get(self, record_id: int) -> AttendanceRecord:
        async with db_transaction(self._conn_factory, error=StoreError) as conn:
            result = await conn.execute(select(_t).where(_t.c.record_id == int(record_id)))
            r = fetchone(result)
        if not r:
            raise RecordNotFound(int(record_id))
        return _to_record(r)

    async def mark_synced(self, record_id: int, synced_at: datetime) -> AttendanceRecord:
        async with db_transaction(self._conn_factory) as conn:
            result = await conn.execute(select(_t).where(_t.c.record_id == int(record_id)))
            r = fetchone(result)
            if not r:
                raise RecordNotFound(int(record_id))

            # Terminal state: a repeated acknowledgement keeps the first synced_at.
            if r["sync_status"] == SyncStatus.SYNCED.value:
                return _to_record(r)

            await conn.execute(
                update(_t)
                .where(_t.c.record_id == int(record_id))
                .where(_t.c.sync_status == SyncStatus.PENDING.value)
                .values(sync_status=SyncStatus.SYNCED.value, synced_at=to_db_datetime(synced_at))
            )
            r.update(sync_status=SyncStatus.SYNCED.value, synced_at=to_db_datetime(synced_at))
            return _to_record(r)

    async def list_pending(self) -> Sequence[AttendanceRecord]:
        async with db_transaction(self._conn_factory, error=StoreError) as conn:
            result = await conn.execute(
                select(_t).where(_t.c.sync_status == SyncStatus.PENDING.value).order_by(_t.c.record_id)
            )
            rows = fetchall(result)
        return [_to_record(r) for r in rows]

    async def list_all(self) -> Sequence[AttendanceRecord]:
        async with db_transaction(self._conn_factory, error=StoreError) as conn:
            result = await conn.execute(select(_t).order_by(_t.c.record_id))
            rows = fetchall(result)
        return [_to_record(r) for r in rows]

    async def count_pending(self) -> int:
        async with db_transaction(self._conn_factory, error=StoreError) as conn:
            result = await conn.execute(
                select(func.count()).select_from(_t).where(_t.c.sync_status == SyncStatus.PENDING.value)
            )
            return int(result.scalar_one())
