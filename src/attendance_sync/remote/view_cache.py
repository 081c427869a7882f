from __future__ import annotations

import time
from typing import Callable, Optional, Sequence

from ..core.constants import DEFAULT_REMOTE_VIEW_TTL_SECONDS
from .model import RemoteRecord


class RemoteViewCache:
    """Last successful remote fetch, served for at most ``ttl_seconds``.

    Entries are replaced wholesale. A put carrying a ticket older than the
    newest accepted one is dropped, so a slow fetch cannot overwrite the
    result of a fetch issued after it. ``invalidate`` also retires every
    ticket issued so far.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_REMOTE_VIEW_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._records: Optional[tuple[RemoteRecord, ...]] = None
        self._fetched_at: Optional[float] = None
        self._next_ticket = 0
        self._accepted_ticket = -1

    def issue_ticket(self) -> int:
        ticket = self._next_ticket
        self._next_ticket += 1
        return ticket

    def get(self) -> Optional[Sequence[RemoteRecord]]:
        if self._records is None or self._fetched_at is None:
            return None
        if self._clock() - self._fetched_at >= self._ttl:
            return None
        return self._records

    def put(self, records: Sequence[RemoteRecord], *, ticket: Optional[int] = None) -> bool:
        if ticket is None:
            ticket = self.issue_ticket()
        if ticket < self._accepted_ticket:
            return False
        self._accepted_ticket = ticket
        self._records = tuple(records)
        self._fetched_at = self._clock()
        return True

    def invalidate(self) -> None:
        # Fetches issued before this point may no longer populate the cache.
        self._accepted_ticket = self._next_ticket
        self._records = None
        self._fetched_at = None
