from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol

from ..remote.model import Identity

logger = logging.getLogger(__name__)

IdentityListener = Callable[[Optional[Identity]], None]


class IdentityProvider(Protocol):
    def current_identity(self) -> Optional[Identity]:
        raise NotImplementedError

    def on_identity_change(self, listener: IdentityListener) -> Callable[[], None]:
        """Subscribe; returns a callable that unsubscribes."""

        raise NotImplementedError


class SessionState(IdentityProvider):
    """In-process identity holder fed by the sign-in collaborator."""

    def __init__(self, identity: Optional[Identity] = None):
        self._identity = identity
        self._listeners: List[IdentityListener] = []

    def current_identity(self) -> Optional[Identity]:
        return self._identity

    def on_identity_change(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def sign_in(self, identity: Identity) -> None:
        self._set(identity)

    def sign_out(self) -> None:
        self._set(None)

    def _set(self, identity: Optional[Identity]) -> None:
        if identity == self._identity:
            return
        self._identity = identity
        logger.info("Session %s", "signed in" if identity else "signed out")
        for listener in list(self._listeners):
            listener(identity)
