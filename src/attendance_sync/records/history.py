"""Read-side helpers for the history view (local or remote records)."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Generic, Optional, Sequence, TypeVar, Union

from ..common.datetime_utils import ensure_aware
from ..core.constants import DEFAULT_HISTORY_PAGE_SIZE
from ..core.enums import SyncStatus
from ..core.exceptions import ValidationError
from ..remote.model import RemoteRecord
from .model import AttendanceRecord

HistoryRecord = Union[AttendanceRecord, RemoteRecord]
T = TypeVar("T")

PERIODS = {"today", "week"}


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    page: int
    total_pages: int
    total_items: int


def _period_start(period: str, now: datetime) -> datetime:
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "week":
        # Weeks start on Sunday.
        start -= timedelta(days=(start.weekday() + 1) % 7)
    return start


def filter_history(
    records: Sequence[HistoryRecord],
    *,
    status: Optional[SyncStatus] = None,
    period: Optional[str] = None,
    search: str = "",
    now: Optional[datetime] = None,
) -> list[HistoryRecord]:
    """Filter and sort records newest first.

    ``status`` only applies to local records; remote records always count as
    synced. ``period`` is ``"today"`` or ``"week"`` relative to ``now``.
    """

    items = list(records)

    if status is not None:
        items = [r for r in items if r.sync_status == status]

    if period:
        if period not in PERIODS:
            raise ValidationError(f"Unknown period: {period!r}")
        now = ensure_aware(now or datetime.now().astimezone())
        start = _period_start(period, now)
        items = [r for r in items if ensure_aware(r.timestamp) >= start]

    term = (search or "").strip().lower()
    if term:
        items = [
            r
            for r in items
            if term in r.first_name.lower() or term in r.last_name.lower() or term in r.action_label.lower()
        ]

    items.sort(key=lambda r: ensure_aware(r.timestamp), reverse=True)
    return items


def paginate(records: Sequence[T], *, page: int = 1, per_page: int = DEFAULT_HISTORY_PAGE_SIZE) -> Page[T]:
    if per_page <= 0:
        raise ValidationError("per_page must be greater than zero")
    total_pages = max(1, math.ceil(len(records) / per_page))
    page = min(max(1, int(page)), total_pages)
    start = (page - 1) * per_page
    return Page(
        items=list(records[start : start + per_page]),
        page=page,
        total_pages=total_pages,
        total_items=len(records),
    )
