from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import to_iso
from ..core.enums import ActionCode, SyncStatus


@dataclass(frozen=True)
class NewRecord:
    """Dữ liệu do nguồn quét (capture source) cung cấp trước khi lưu."""

    first_name: str
    last_name: str
    action: ActionCode
    timestamp: datetime
    action_label: Optional[str] = None


@dataclass(frozen=True)
class AttendanceRecord:
    """Thực thể miền (domain): Bản ghi chấm công lưu cục bộ."""

    record_id: int
    first_name: str
    last_name: str
    timestamp: datetime
    action: ActionCode
    action_label: str
    sync_status: SyncStatus
    created_at: datetime
    synced_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.sync_status == SyncStatus.PENDING

    @property
    def idempotency_key(self) -> str:
        # Stable per record: same id + capture instant always yields the same key.
        raw = f"{self.record_id}|{to_iso(self.timestamp)}".encode("utf-8")
        return hashlib.sha256(raw).hexdigest()[:32]
