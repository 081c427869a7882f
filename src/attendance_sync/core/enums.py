from __future__ import annotations

from enum import Enum
from typing import Optional


class SyncStatus(str, Enum):
    """Trạng thái đồng bộ của một bản ghi cục bộ."""

    PENDING = "pending"
    SYNCED = "synced"


class ActionCode(str, Enum):
    """Loại sự kiện chấm công (tập đóng)."""

    TIME_IN = "TIME_IN"
    LUNCH_OUT = "LUNCH_OUT"
    LUNCH_IN = "LUNCH_IN"
    TIME_OUT = "TIME_OUT"
    UNIVERSITY_ACTIVITY = "UNIVERSITY_ACTIVITY"

    @property
    def label(self) -> str:
        return ACTION_LABELS[self]

    @classmethod
    def from_label(cls, label: str) -> Optional["ActionCode"]:
        """Map a display label (or a legacy short code) back to its action."""

        value = (label or "").strip()
        if not value:
            return None
        value = LEGACY_ACTION_LABELS.get(value.upper(), value)
        for code, text in ACTION_LABELS.items():
            if text.lower() == value.lower() or code.value == value.upper():
                return code
        return None


ACTION_LABELS = {
    ActionCode.TIME_IN: "Time In",
    ActionCode.LUNCH_OUT: "Lunch Out",
    ActionCode.LUNCH_IN: "Lunch In",
    ActionCode.TIME_OUT: "Time Out",
    ActionCode.UNIVERSITY_ACTIVITY: "University Activity",
}

# Short codes written by older clients into the remote sheet.
LEGACY_ACTION_LABELS = {
    "IN": "Time In",
    "OUT": "Time Out",
    "LOUT": "Lunch Out",
    "LIN": "Lunch In",
    "UA": "University Activity",
}


class SyncOutcome(str, Enum):
    """Kết quả của một lần đồng bộ một bản ghi."""

    SYNCED = "SYNCED"
    ALREADY_SYNCED = "ALREADY_SYNCED"
    OFFLINE = "OFFLINE"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    REJECTED = "REJECTED"
    TRANSPORT_FAILURE = "TRANSPORT_FAILURE"
    STORE_FAILURE = "STORE_FAILURE"


class OrchestratorState(str, Enum):
    IDLE = "IDLE"
    SYNCING = "SYNCING"
