from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from ..session.identity import IdentityProvider
from .channel import RemoteSubmissionChannel
from .model import Identity, RemoteRecord
from .view_cache import RemoteViewCache

logger = logging.getLogger(__name__)


class RemoteViewService:
    """Read path for the organization-wide view.

    Concurrent callers during a cache miss share one in-flight fetch. A forced
    refresh starts a new fetch; the one it supersedes can no longer write the
    cache.
    """

    def __init__(
        self,
        channel: RemoteSubmissionChannel,
        cache: RemoteViewCache,
        identity: Optional[IdentityProvider] = None,
    ):
        self._channel = channel
        self._cache = cache
        self._inflight: Optional[asyncio.Task] = None
        if identity is not None:
            identity.on_identity_change(self._on_identity_change)

    @property
    def cache(self) -> RemoteViewCache:
        return self._cache

    def _on_identity_change(self, identity: Optional[Identity]) -> None:
        self._cache.invalidate()
        self._inflight = None

    def _clear_inflight(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None

    async def _fetch(self, ticket: int) -> Sequence[RemoteRecord]:
        records = await self._channel.fetch_all()
        if not self._cache.put(records, ticket=ticket):
            logger.debug("Discarded superseded remote fetch (ticket %s)", ticket)
        return records

    async def get_remote_view(self, force_refresh: bool = False) -> list[RemoteRecord]:
        if force_refresh:
            self._cache.invalidate()
        else:
            cached = self._cache.get()
            if cached is not None:
                logger.debug("Using cached organization records")
                return list(cached)
            if self._inflight is not None and not self._inflight.done():
                return list(await asyncio.shield(self._inflight))

        task = asyncio.ensure_future(self._fetch(self._cache.issue_ticket()))
        task.add_done_callback(self._clear_inflight)
        self._inflight = task
        records = await asyncio.shield(task)
        logger.info("Fetched %d organization records", len(records))
        return list(records)
