from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from attendance_sync.core.enums import ActionCode, OrchestratorState, SyncOutcome, SyncStatus
from attendance_sync.core.exceptions import RecordNotFound, WriteFailed
from attendance_sync.records.model import AttendanceRecord, NewRecord
from attendance_sync.remote.channel import RemoteSubmissionChannel
from attendance_sync.session.connectivity import StaticConnectivity
from attendance_sync.session.identity import SessionState
from attendance_sync.sync.orchestrator import BatchResult, SyncOrchestrator
from attendance_sync.sync.pending_count import PendingCountObserver

SYNC_TIME = datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc)


class InMemoryRecordStore:
    def __init__(self):
        self._records: dict[int, AttendanceRecord] = {}
        self._id = 0
        self.mark_calls = 0

    async def append(self, record: NewRecord) -> AttendanceRecord:
        self._id += 1
        rec = AttendanceRecord(
            record_id=self._id,
            first_name=record.first_name,
            last_name=record.last_name,
            timestamp=record.timestamp,
            action=record.action,
            action_label=record.action_label or record.action.label,
            sync_status=SyncStatus.PENDING,
            created_at=record.timestamp,
        )
        self._records[rec.record_id] = rec
        return rec

    async def get(self, record_id: int) -> AttendanceRecord:
        if record_id not in self._records:
            raise RecordNotFound(record_id)
        return self._records[record_id]

    async def mark_synced(self, record_id: int, synced_at: datetime) -> AttendanceRecord:
        self.mark_calls += 1
        rec = await self.get(record_id)
        if rec.sync_status == SyncStatus.PENDING:
            rec = replace(rec, sync_status=SyncStatus.SYNCED, synced_at=synced_at)
            self._records[record_id] = rec
        return rec

    async def list_pending(self):
        return [r for r in self._records.values() if r.sync_status == SyncStatus.PENDING]

    async def list_all(self):
        return list(self._records.values())

    async def count_pending(self) -> int:
        return len(await self.list_pending())


class FailingMarkStore(InMemoryRecordStore):
    """Accepts appends but cannot record a successful upload."""

    async def mark_synced(self, record_id: int, synced_at: datetime) -> AttendanceRecord:
        self.mark_calls += 1
        raise WriteFailed("disk full")


def _new(last: str, minutes: int = 0) -> NewRecord:
    return NewRecord(
        first_name="Jane",
        last_name=last,
        action=ActionCode.TIME_IN,
        timestamp=datetime(2024, 1, 10, 8, 0, tzinfo=timezone.utc) + timedelta(minutes=minutes),
    )


def _orchestrator(store, transport, session, *, online=True, connectivity: Optional[StaticConnectivity] = None):
    connectivity = connectivity or StaticConnectivity(online=online)
    channel = RemoteSubmissionChannel(transport, session)
    return SyncOrchestrator(store, channel, connectivity, session, clock=lambda: SYNC_TIME)


async def _seed(store, *lasts):
    return [await store.append(_new(last, i)) for i, last in enumerate(lasts)]


def test_batch_counts_successes_and_failures(transport, session):
    store = InMemoryRecordStore()
    transport.fail = {"Fail1": "reject", "Fail2": "transport"}
    orch = _orchestrator(store, transport, session)

    async def scenario():
        await _seed(store, "Ok1", "Fail1", "Ok2", "Fail2", "Ok3")
        return await orch.run_batch_sync()

    result = asyncio.run(scenario())

    assert result == BatchResult(succeeded=3, failed=2)
    synced = {r.last_name for r in asyncio.run(store.list_all()) if r.sync_status == SyncStatus.SYNCED}
    assert synced == {"Ok1", "Ok2", "Ok3"}
    assert orch.last_result == result


def test_batch_submits_in_storage_order(transport, session):
    store = InMemoryRecordStore()
    orch = _orchestrator(store, transport, session)

    async def scenario():
        await _seed(store, "A", "B", "C")
        await orch.run_batch_sync()

    asyncio.run(scenario())
    assert [c["lastName"] for c in transport.submissions] == ["A", "B", "C"]


def test_batch_offline_makes_no_remote_calls(transport, session):
    store = InMemoryRecordStore()
    orch = _orchestrator(store, transport, session, online=False)

    async def scenario():
        await _seed(store, "A", "B")
        return await orch.run_batch_sync()

    assert asyncio.run(scenario()) == BatchResult()
    assert transport.calls == []
    assert asyncio.run(store.count_pending()) == 2


def test_batch_signed_out_makes_no_remote_calls(transport):
    store = InMemoryRecordStore()
    orch = _orchestrator(store, transport, SessionState())

    async def scenario():
        await _seed(store, "A")
        return await orch.run_batch_sync()

    assert asyncio.run(scenario()) == BatchResult()
    assert transport.calls == []


def test_batch_with_nothing_pending_is_noop(transport, session):
    orch = _orchestrator(InMemoryRecordStore(), transport, session)

    assert asyncio.run(orch.run_batch_sync()) == BatchResult()
    assert transport.calls == []


def test_failed_record_is_retried_on_next_batch(transport, session):
    store = InMemoryRecordStore()
    transport.fail = {"Second": "transport"}
    orch = _orchestrator(store, transport, session)

    async def scenario():
        first, second = await _seed(store, "First", "Second")
        r1 = await orch.run_batch_sync()
        state_after_first = (await store.get(first.record_id), await store.get(second.record_id))
        transport.fail.clear()
        r2 = await orch.run_batch_sync()
        return r1, r2, state_after_first, await store.get(second.record_id)

    r1, r2, (first, second), second_later = asyncio.run(scenario())

    assert r1 == BatchResult(succeeded=1, failed=1)
    assert first.sync_status == SyncStatus.SYNCED
    assert second.sync_status == SyncStatus.PENDING
    assert r2 == BatchResult(succeeded=1, failed=0)
    assert second_later.sync_status == SyncStatus.SYNCED
    assert [c["lastName"] for c in transport.submissions] == ["First", "Second", "Second"]


def test_concurrent_batch_calls_share_one_run(transport, session):
    store = InMemoryRecordStore()
    orch = _orchestrator(store, transport, session)

    async def scenario():
        await _seed(store, "A", "B")
        transport.gates[1] = asyncio.Event()
        first = asyncio.ensure_future(orch.run_batch_sync())
        await asyncio.sleep(0)
        assert orch.state == OrchestratorState.SYNCING
        second = asyncio.ensure_future(orch.run_batch_sync())
        await asyncio.sleep(0)
        transport.gates[1].set()
        return await asyncio.gather(first, second)

    r1, r2 = asyncio.run(scenario())

    assert r1 == r2 == BatchResult(succeeded=2, failed=0)
    assert len(transport.submissions) == 2
    assert orch.state == OrchestratorState.IDLE


def test_sign_out_mid_batch_leaves_rest_pending(transport, session):
    store = InMemoryRecordStore()
    orch = _orchestrator(store, transport, session)

    async def scenario():
        await _seed(store, "A", "B", "C")
        transport.gates[1] = asyncio.Event()
        batch = asyncio.ensure_future(orch.run_batch_sync())
        for _ in range(3):
            await asyncio.sleep(0)
        session.sign_out()
        transport.gates[1].set()
        return await batch

    result = asyncio.run(scenario())

    assert result == BatchResult(succeeded=1, failed=2)
    assert len(transport.calls) == 1
    assert asyncio.run(store.count_pending()) == 2


def test_single_sync_outcomes(transport, session):
    store = InMemoryRecordStore()
    transport.fail = {"Rejected": "reject", "Flaky": "transport"}
    orch = _orchestrator(store, transport, session)

    async def scenario():
        ok, rejected, flaky = await _seed(store, "Ok", "Rejected", "Flaky")
        return (
            await orch.run_single_sync(ok.record_id),
            await orch.run_single_sync(ok.record_id),
            await orch.run_single_sync(rejected.record_id),
            await orch.run_single_sync(flaky.record_id),
        )

    assert asyncio.run(scenario()) == (
        SyncOutcome.SYNCED,
        SyncOutcome.ALREADY_SYNCED,
        SyncOutcome.REJECTED,
        SyncOutcome.TRANSPORT_FAILURE,
    )


def test_single_sync_gates(transport, session):
    store = InMemoryRecordStore()
    offline = _orchestrator(store, transport, session, online=False)
    signed_out = _orchestrator(store, transport, SessionState())

    async def scenario():
        (rec,) = await _seed(store, "A")
        return await offline.run_single_sync(rec.record_id), await signed_out.run_single_sync(rec.record_id)

    assert asyncio.run(scenario()) == (SyncOutcome.OFFLINE, SyncOutcome.UNAUTHENTICATED)
    assert transport.calls == []


def test_single_sync_unknown_record_raises(transport, session):
    orch = _orchestrator(InMemoryRecordStore(), transport, session)

    with pytest.raises(RecordNotFound):
        asyncio.run(orch.run_single_sync(42))


def test_capture_uploads_immediately_when_online(transport, session):
    store = InMemoryRecordStore()
    orch = _orchestrator(store, transport, session)

    result = asyncio.run(orch.capture(_new("Doe")))

    assert result.uploaded
    assert result.record.sync_status == SyncStatus.SYNCED
    assert result.record.synced_at == SYNC_TIME


def test_capture_offline_saves_without_upload(transport, session):
    store = InMemoryRecordStore()
    orch = _orchestrator(store, transport, session, online=False)

    result = asyncio.run(orch.capture(_new("Doe")))

    assert result.outcome is None
    assert result.record.sync_status == SyncStatus.PENDING
    assert transport.calls == []


def test_capture_upload_failure_is_reported_but_record_kept(transport, session):
    store = InMemoryRecordStore()
    transport.fail = {"Doe": "transport"}
    orch = _orchestrator(store, transport, session)

    result = asyncio.run(orch.capture(_new("Doe")))

    assert result.outcome == SyncOutcome.TRANSPORT_FAILURE
    assert "connection reset" in result.detail
    assert result.record.sync_status == SyncStatus.PENDING
    assert asyncio.run(PendingCountObserver(store).count()) == 1


def test_single_sync_waits_for_running_batch(transport, session):
    store = InMemoryRecordStore()
    orch = _orchestrator(store, transport, session)

    async def scenario():
        _, b = await _seed(store, "A", "B")
        transport.gates[1] = asyncio.Event()
        batch = asyncio.ensure_future(orch.run_batch_sync())
        for _ in range(3):
            await asyncio.sleep(0)
        single = asyncio.ensure_future(orch.run_single_sync(b.record_id))
        await asyncio.sleep(0)
        transport.gates[1].set()
        return await asyncio.gather(batch, single)

    batch_result, single_outcome = asyncio.run(scenario())

    assert batch_result == BatchResult(succeeded=2, failed=0)
    assert single_outcome == SyncOutcome.ALREADY_SYNCED
    assert [c["lastName"] for c in transport.submissions] == ["A", "B"]
    assert store.mark_calls == 2


def test_batch_skips_record_synced_after_snapshot(transport, session):
    store = InMemoryRecordStore()
    orch = _orchestrator(store, transport, session)

    async def scenario():
        _, b = await _seed(store, "A", "B")
        transport.gates[1] = asyncio.Event()
        batch = asyncio.ensure_future(orch.run_batch_sync())
        for _ in range(3):
            await asyncio.sleep(0)
        await store.mark_synced(b.record_id, SYNC_TIME)
        transport.gates[1].set()
        return await batch

    assert asyncio.run(scenario()) == BatchResult(succeeded=1, failed=0)
    assert [c["lastName"] for c in transport.submissions] == ["A"]


def test_capture_reports_store_failure_after_upload(transport, session):
    store = FailingMarkStore()
    orch = _orchestrator(store, transport, session)

    result = asyncio.run(orch.capture(_new("Doe")))

    assert result.outcome == SyncOutcome.STORE_FAILURE
    assert not result.uploaded
    assert "disk full" in result.detail
    assert result.record.sync_status == SyncStatus.PENDING
    assert len(transport.submissions) == 1
    assert asyncio.run(store.count_pending()) == 1


def test_single_sync_reports_store_failure(transport, session):
    store = FailingMarkStore()
    orch = _orchestrator(store, transport, session)

    async def scenario():
        (rec,) = await _seed(store, "A")
        return await orch.run_single_sync(rec.record_id)

    assert asyncio.run(scenario()) == SyncOutcome.STORE_FAILURE
    assert asyncio.run(store.count_pending()) == 1


def test_batch_counts_store_failure_and_keeps_record_pending(transport, session):
    store = FailingMarkStore()
    orch = _orchestrator(store, transport, session)

    async def scenario():
        await _seed(store, "A")
        return await orch.run_batch_sync()

    assert asyncio.run(scenario()) == BatchResult(succeeded=0, failed=1)
    assert store.mark_calls == 1
    assert asyncio.run(store.count_pending()) == 1


def test_last_result_reflects_latest_batch_call(transport, session):
    store = InMemoryRecordStore()
    connectivity = StaticConnectivity(online=True)
    orch = _orchestrator(store, transport, session, connectivity=connectivity)

    async def scenario():
        await _seed(store, "A")
        first = await orch.run_batch_sync()
        after_first = orch.last_result
        await store.append(_new("B"))
        await connectivity.set_online(False)
        await orch.run_batch_sync()
        after_gated = orch.last_result
        await connectivity.set_online(True)
        await orch.run_batch_sync()
        await orch.run_batch_sync()
        return first, after_first, after_gated, orch.last_result

    first, after_first, after_gated, after_empty = asyncio.run(scenario())

    assert after_first == first == BatchResult(succeeded=1, failed=0)
    assert after_gated == BatchResult()
    assert after_empty == BatchResult()
