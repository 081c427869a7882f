from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_iso_instant
from ..core.enums import ACTION_LABELS, ActionCode, SyncStatus
from ..core.exceptions import TransportFailure


@dataclass(frozen=True)
class Identity:
    """Người dùng đã đăng nhập (timekeeper) do session provider cung cấp."""

    uid: str
    email: str


@dataclass(frozen=True)
class SubmissionReceipt:
    correlation_id: str
    message: Optional[str] = None


@dataclass(frozen=True)
class RemoteRecord:
    """A row of the remote-authoritative record set (no local id)."""

    first_name: str
    last_name: str
    timestamp: datetime
    action_label: str
    action: Optional[ActionCode] = None
    submitted_by: Optional[str] = None

    @property
    def sync_status(self) -> SyncStatus:
        return SyncStatus.SYNCED

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RemoteRecord":
        try:
            raw_label = str(payload.get("actionLabel") or payload.get("action") or "").strip()
            action = ActionCode.from_label(raw_label)
            if action is None:
                raise ValueError(f"unknown action label {raw_label!r}")
            return cls(
                first_name=str(payload["firstName"]).strip(),
                last_name=str(payload["lastName"]).strip(),
                timestamp=parse_iso_instant(str(payload["timestamp"])),
                action_label=ACTION_LABELS[action],
                action=action,
                submitted_by=payload.get("timekeeperEmail") or payload.get("email"),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise TransportFailure(f"Malformed remote record: {exc}") from exc
