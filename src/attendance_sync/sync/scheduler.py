from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from ..core.constants import DEFAULT_SYNC_INTERVAL_SECONDS
from ..session.connectivity import ConnectivitySignal
from .orchestrator import BatchResult, SyncOrchestrator

logger = logging.getLogger(__name__)


class SyncScheduler:
    """Triggers batch sync on a timer and on every offline->online transition."""

    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        connectivity: ConnectivitySignal,
        *,
        interval_seconds: float = DEFAULT_SYNC_INTERVAL_SECONDS,
    ):
        self._orchestrator = orchestrator
        self._connectivity = connectivity
        self._interval = float(interval_seconds)
        self._unsubscribe: Optional[Callable[[], None]] = None

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self._connectivity.on_online(self.on_online)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def on_online(self) -> None:
        logger.info("Back online; syncing pending records")
        await self.trigger()

    async def trigger(self) -> BatchResult:
        return await self._orchestrator.run_batch_sync()

    async def run(self) -> None:
        """Periodic loop; runs until cancelled."""

        self.start()
        try:
            while True:
                await asyncio.sleep(self._interval)
                await self.trigger()
        finally:
            self.stop()
