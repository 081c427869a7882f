from __future__ import annotations

from ..records.repository import RecordStore


class PendingCountObserver:
    """Live count of not-yet-synced records, recomputed on every call."""

    def __init__(self, store: RecordStore):
        self._store = store

    async def count(self) -> int:
        return await self._store.count_pending()

