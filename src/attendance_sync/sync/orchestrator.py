from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import utc_now
from ..core.enums import OrchestratorState, SyncOutcome
from ..core.exceptions import RemoteError, RemoteRejected, StoreError, Unauthenticated
from ..records.model import AttendanceRecord, NewRecord
from ..records.repository import RecordStore
from ..remote.channel import RemoteSubmissionChannel
from ..remote.model import Identity
from ..session.connectivity import ConnectivitySignal
from ..session.identity import IdentityProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchResult:
    succeeded: int = 0
    failed: int = 0


@dataclass(frozen=True)
class CaptureResult:
    """Outcome of a capture: the record is always saved when this exists.

    ``outcome`` is None when no upload was attempted (offline or signed out).
    """

    record: AttendanceRecord
    outcome: Optional[SyncOutcome] = None
    detail: Optional[str] = None

    @property
    def uploaded(self) -> bool:
        return self.outcome == SyncOutcome.SYNCED


def _outcome_for(exc: RemoteError) -> SyncOutcome:
    if isinstance(exc, Unauthenticated):
        return SyncOutcome.UNAUTHENTICATED
    if isinstance(exc, RemoteRejected):
        return SyncOutcome.REJECTED
    return SyncOutcome.TRANSPORT_FAILURE


class SyncOrchestrator:
    """Pushes pending local records to the remote system.

    This is the only component that marks records synced. Batch runs are
    single-flight: a second ``run_batch_sync`` while one is running awaits the
    running batch and returns its result.
    """

    def __init__(
        self,
        store: RecordStore,
        channel: RemoteSubmissionChannel,
        connectivity: ConnectivitySignal,
        identity: IdentityProvider,
        *,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._channel = channel
        self._connectivity = connectivity
        self._identity = identity
        self._clock = clock
        self._batch: Optional[asyncio.Task] = None
        self._last_result: Optional[BatchResult] = None
        identity.on_identity_change(self._on_identity_change)

    @property
    def state(self) -> OrchestratorState:
        if self._batch is not None and not self._batch.done():
            return OrchestratorState.SYNCING
        return OrchestratorState.IDLE

    @property
    def last_result(self) -> Optional[BatchResult]:
        return self._last_result

    def _on_identity_change(self, identity: Optional[Identity]) -> None:
        if identity is None and self.state == OrchestratorState.SYNCING:
            # Remaining submissions fail fast with Unauthenticated and stay pending.
            logger.warning("Signed out during batch sync; remaining records stay pending")

    def _can_reach_remote(self) -> bool:
        return self._connectivity.is_online() and self._identity.current_identity() is not None

    async def capture(self, new_record: NewRecord) -> CaptureResult:
        """Save a captured event locally, then try one immediate upload.

        Store errors from the append propagate: the record was not saved at
        all. Anything after that is reported in the result.
        """

        record = await self._store.append(new_record)
        if not self._can_reach_remote():
            return CaptureResult(record=record)

        outcome, detail = await self._sync_one(record)
        if outcome == SyncOutcome.SYNCED:
            record = await self._store.get(record.record_id)
        return CaptureResult(record=record, outcome=outcome, detail=detail)

    async def _sync_one(self, record: AttendanceRecord) -> tuple[SyncOutcome, Optional[str]]:
        try:
            await self._channel.submit(record)
        except RemoteError as exc:
            logger.warning("Upload of record %s failed: %s", record.record_id, exc)
            return _outcome_for(exc), str(exc)

        try:
            await self._store.mark_synced(record.record_id, self._clock())
        except StoreError as exc:
            # Acknowledged remotely but still pending locally; it will be resubmitted.
            logger.exception("Could not mark record %s as synced", record.record_id)
            return SyncOutcome.STORE_FAILURE, str(exc)
        return SyncOutcome.SYNCED, None

    async def run_single_sync(self, record_id: int) -> SyncOutcome:
        """One upload attempt for one record; no retry.

        A running batch is awaited first so the record is never submitted by
        both paths.
        """

        if self._batch is not None and not self._batch.done():
            logger.debug("Waiting for running batch before syncing record %s", record_id)
            await asyncio.shield(self._batch)

        record = await self._store.get(record_id)
        if not record.is_pending:
            return SyncOutcome.ALREADY_SYNCED
        if not self._connectivity.is_online():
            return SyncOutcome.OFFLINE
        if self._identity.current_identity() is None:
            return SyncOutcome.UNAUTHENTICATED

        outcome, _ = await self._sync_one(record)
        return outcome

    async def run_batch_sync(self) -> BatchResult:
        if self._batch is not None and not self._batch.done():
            logger.debug("Batch sync already running; joining it")
            return await asyncio.shield(self._batch)

        if not self._can_reach_remote():
            self._last_result = BatchResult()
            return self._last_result

        self._batch = asyncio.ensure_future(self._run_batch())
        return await asyncio.shield(self._batch)

    async def _run_batch(self) -> BatchResult:
        pending = await self._store.list_pending()
        if not pending:
            self._last_result = BatchResult()
            return self._last_result

        logger.info("Syncing %d pending records", len(pending))
        succeeded = failed = 0
        for snapshot in pending:
            # Another path may have synced it since the snapshot was taken.
            record = await self._store.get(snapshot.record_id)
            if not record.is_pending:
                logger.debug("Record %s already synced; skipping", record.record_id)
                continue

            outcome, _ = await self._sync_one(record)
            if outcome == SyncOutcome.SYNCED:
                succeeded += 1
            else:
                failed += 1

        result = BatchResult(succeeded=succeeded, failed=failed)
        self._last_result = result
        if failed:
            logger.warning("Synced %d records, %d failed", succeeded, failed)
        else:
            logger.info("Successfully synced %d records", succeeded)
        return result
