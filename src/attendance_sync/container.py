from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType
from typing import Optional

from .database.connection import DBConfig, DatabaseConnection
from .records.sql_record_store import SQLRecordStore
from .remote.channel import RemoteSubmissionChannel
from .remote.model import Identity
from .remote.transport import RequestsTransport, Transport
from .remote.view_cache import RemoteViewCache
from .remote.view_service import RemoteViewService
from .session.connectivity import ConnectivityMonitor, ConnectivitySignal
from .session.identity import SessionState
from .sync.orchestrator import SyncOrchestrator
from .sync.pending_count import PendingCountObserver
from .sync.scheduler import SyncScheduler


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    store: SQLRecordStore
    session: SessionState
    connectivity: ConnectivitySignal
    channel: RemoteSubmissionChannel
    view_cache: RemoteViewCache

    orchestrator: SyncOrchestrator
    pending_counter: PendingCountObserver
    remote_view: RemoteViewService
    scheduler: SyncScheduler

    async def open(self) -> None:
        await self.store.open()

    async def close(self) -> None:
        await self.store.close()


def build_container(
    settings: ModuleType,
    *,
    connectivity: Optional[ConnectivitySignal] = None,
    transport: Optional[Transport] = None,
) -> Container:
    conn = DatabaseConnection(
        DBConfig(url=str(settings.DATABASE_URL), echo=bool(getattr(settings, "DATABASE_ECHO", False)))
    )
    store = SQLRecordStore(conn)

    identity = None
    if getattr(settings, "SESSION_UID", "") and getattr(settings, "SESSION_EMAIL", ""):
        identity = Identity(uid=str(settings.SESSION_UID), email=str(settings.SESSION_EMAIL))
    session = SessionState(identity)

    connectivity = connectivity or ConnectivityMonitor(
        str(settings.CONNECTIVITY_PROBE_URL),
        poll_seconds=float(settings.CONNECTIVITY_POLL_SECONDS),
    )
    transport = transport or RequestsTransport(str(settings.REMOTE_ENDPOINT_URL))
    channel = RemoteSubmissionChannel(transport, session, timeout=float(settings.REMOTE_TIMEOUT_SECONDS))
    view_cache = RemoteViewCache(ttl_seconds=float(settings.REMOTE_VIEW_TTL_SECONDS))

    orchestrator = SyncOrchestrator(store, channel, connectivity, session)
    pending_counter = PendingCountObserver(store)
    remote_view = RemoteViewService(channel, view_cache, session)
    scheduler = SyncScheduler(orchestrator, connectivity, interval_seconds=float(settings.SYNC_INTERVAL_SECONDS))

    return Container(
        conn=conn,
        store=store,
        session=session,
        connectivity=connectivity,
        channel=channel,
        view_cache=view_cache,
        orchestrator=orchestrator,
        pending_counter=pending_counter,
        remote_view=remote_view,
        scheduler=scheduler,
    )
