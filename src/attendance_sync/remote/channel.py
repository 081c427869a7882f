from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Dict, Mapping, Sequence

from ..common.datetime_utils import to_iso
from ..core.constants import DEFAULT_REMOTE_TIMEOUT_SECONDS, REMOTE_SUCCESS_STATUS
from ..core.exceptions import RemoteRejected, TransportFailure, Unauthenticated
from ..records.model import AttendanceRecord
from ..session.identity import IdentityProvider
from .model import Identity, RemoteRecord, SubmissionReceipt
from .transport import CORRELATION_PARAM, Transport

logger = logging.getLogger(__name__)


def _new_correlation_id() -> str:
    return uuid.uuid4().hex


class RemoteSubmissionChannel:
    """Sends single records to the remote sheet and fetches the org-wide set.

    The remote has no notion of request identity, so a submission retried
    after an ambiguous failure may be recorded twice. Each submission carries
    an ``idempotencyKey`` the remote may use to de-duplicate.
    """

    def __init__(
        self,
        transport: Transport,
        identity: IdentityProvider,
        *,
        timeout: float = DEFAULT_REMOTE_TIMEOUT_SECONDS,
        correlation_ids: Callable[[], str] = _new_correlation_id,
    ):
        self._transport = transport
        self._identity = identity
        self._timeout = float(timeout)
        self._correlation_ids = correlation_ids

    def _require_identity(self) -> Identity:
        identity = self._identity.current_identity()
        if identity is None:
            raise Unauthenticated("Must be signed in to reach the remote system")
        return identity

    async def _call(self, params: Mapping[str, str]) -> Dict[str, Any]:
        correlation_id = self._correlation_ids()
        body = await self._transport.exchange(params, correlation_id=correlation_id, timeout=self._timeout)

        echoed = body.get(CORRELATION_PARAM)
        if echoed is not None and str(echoed) != correlation_id:
            raise TransportFailure(f"Response for {echoed} does not belong to request {correlation_id}")

        if body.get("status") != REMOTE_SUCCESS_STATUS:
            raise RemoteRejected(str(body.get("message") or "Unknown error"))

        body.setdefault(CORRELATION_PARAM, correlation_id)
        return body

    async def submit(self, record: AttendanceRecord) -> SubmissionReceipt:
        identity = self._require_identity()
        body = await self._call(
            {
                "Authorization": f"Bearer {identity.uid}",
                "timestamp": to_iso(record.timestamp),
                "timekeeperEmail": identity.email,
                "action": record.action_label,
                "lastName": record.last_name,
                "firstName": record.first_name,
                "idempotencyKey": record.idempotency_key,
            }
        )
        logger.debug("Remote acknowledged record %s", record.record_id)
        return SubmissionReceipt(correlation_id=str(body[CORRELATION_PARAM]), message=body.get("message"))

    async def fetch_all(self) -> Sequence[RemoteRecord]:
        identity = self._require_identity()
        body = await self._call(
            {
                "operation": "fetch",
                "Authorization": f"Bearer {identity.uid}",
                "email": identity.email,
            }
        )
        rows = body.get("records") or []
        if not isinstance(rows, list):
            raise TransportFailure("Remote fetch returned a non-list 'records' field")
        return [RemoteRecord.from_payload(r) for r in rows]
