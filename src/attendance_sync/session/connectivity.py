from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Protocol

import requests

from ..core.constants import DEFAULT_CONNECTIVITY_POLL_SECONDS, DEFAULT_CONNECTIVITY_PROBE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

OnlineListener = Callable[[], Awaitable[None]]


class ConnectivitySignal(Protocol):
    def is_online(self) -> bool:
        raise NotImplementedError

    def on_online(self, listener: OnlineListener) -> Callable[[], None]:
        """Subscribe to offline->online transitions; returns an unsubscribe callable."""

        raise NotImplementedError


class _Listeners:
    def __init__(self):
        self._items: List[OnlineListener] = []

    def add(self, listener: OnlineListener) -> Callable[[], None]:
        self._items.append(listener)

        def unsubscribe() -> None:
            if listener in self._items:
                self._items.remove(listener)

        return unsubscribe

    async def notify(self) -> None:
        for listener in list(self._items):
            try:
                await listener()
            except Exception:
                logger.exception("Online listener failed")


class StaticConnectivity(ConnectivitySignal):
    """Connectivity flag driven by the caller (CLI flags, tests)."""

    def __init__(self, online: bool = True):
        self._online = bool(online)
        self._listeners = _Listeners()

    def is_online(self) -> bool:
        return self._online

    def on_online(self, listener: OnlineListener) -> Callable[[], None]:
        return self._listeners.add(listener)

    async def set_online(self, online: bool) -> None:
        was_online, self._online = self._online, bool(online)
        if self._online and not was_online:
            await self._listeners.notify()


class ConnectivityMonitor(ConnectivitySignal):
    """Polls a probe URL and reports offline->online transitions."""

    def __init__(
        self,
        probe_url: str,
        *,
        poll_seconds: float = DEFAULT_CONNECTIVITY_POLL_SECONDS,
        probe_timeout: float = DEFAULT_CONNECTIVITY_PROBE_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self._probe_url = probe_url
        self._poll_seconds = float(poll_seconds)
        self._probe_timeout = float(probe_timeout)
        self._session = session or requests.Session()
        self._online = False
        self._listeners = _Listeners()

    def is_online(self) -> bool:
        return self._online

    def on_online(self, listener: OnlineListener) -> Callable[[], None]:
        return self._listeners.add(listener)

    def _probe(self) -> bool:
        try:
            self._session.head(self._probe_url, timeout=self._probe_timeout, allow_redirects=True)
            return True
        except requests.RequestException:
            return False

    async def check(self) -> bool:
        """Probe once, update the flag and fire listeners on a transition."""

        online = await asyncio.to_thread(self._probe)
        was_online, self._online = self._online, online
        if online != was_online:
            logger.info("Connectivity changed: %s", "online" if online else "offline")
        if online and not was_online:
            await self._listeners.notify()
        return online

    async def run(self) -> None:
        while True:
            await self.check()
            await asyncio.sleep(self._poll_seconds)
