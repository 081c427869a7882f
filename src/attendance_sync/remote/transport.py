"""Request/response exchange with the remote system of record.

A transport sends one request (a flat mapping of parameters) and returns the
decoded structured response. It knows nothing about attendance semantics.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Protocol

import requests

from ..core.exceptions import TransportFailure

logger = logging.getLogger(__name__)

CORRELATION_PARAM = "requestId"
CORRELATION_HEADER = "X-Request-ID"


class Transport(Protocol):
    async def exchange(
        self,
        params: Mapping[str, str],
        *,
        correlation_id: str,
        timeout: float,
    ) -> Dict[str, Any]:
        raise NotImplementedError


class RequestsTransport(Transport):
    """HTTP GET exchange over a shared ``requests.Session``.

    The blocking call runs off the event loop and is awaited, so callers still
    issue one request at a time.
    """

    def __init__(self, endpoint_url: str, *, session: requests.Session | None = None):
        self._endpoint_url = endpoint_url
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json", "User-Agent": "attendance-sync/1.0"})

    def _get(self, params: Mapping[str, str], correlation_id: str, timeout: float) -> Dict[str, Any]:
        query = dict(params)
        query[CORRELATION_PARAM] = correlation_id
        try:
            resp = self._session.get(
                self._endpoint_url,
                params=query,
                headers={CORRELATION_HEADER: correlation_id},
                timeout=timeout,
            )
        except requests.RequestException as exc:
            raise TransportFailure(f"Request {correlation_id} failed: {exc}") from exc

        try:
            body = resp.json()
        except ValueError as exc:
            raise TransportFailure(f"Request {correlation_id} returned HTTP {resp.status_code} without JSON body") from exc

        if not isinstance(body, dict):
            raise TransportFailure(f"Request {correlation_id} returned an unexpected body")
        return body

    async def exchange(
        self,
        params: Mapping[str, str],
        *,
        correlation_id: str,
        timeout: float,
    ) -> Dict[str, Any]:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._get, params, correlation_id, timeout),
                timeout=timeout + 1.0,
            )
        except asyncio.TimeoutError as exc:
            raise TransportFailure(f"Request {correlation_id} timed out after {timeout}s") from exc
