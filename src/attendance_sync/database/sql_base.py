from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Optional, Type

from sqlalchemy.engine import Result
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from ..common.datetime_utils import ensure_aware
from ..core.exceptions import StoreError, WriteFailed
from .connection import DatabaseConnection


@asynccontextmanager
async def db_transaction(
    conn_factory: DatabaseConnection,
    *,
    error: Type[StoreError] = WriteFailed,
) -> AsyncIterator[AsyncConnection]:
    """Run the body inside one committed transaction.

    Database errors are re-raised as ``error``; domain errors raised by the
    body roll back and propagate unchanged.
    """

    engine = conn_factory.engine()
    try:
        async with engine.begin() as conn:
            yield conn
    except SQLAlchemyError as exc:
        raise error(str(exc)) from exc


def fetchone(result: Result) -> Optional[Dict[str, Any]]:
    row = result.mappings().first()
    return dict(row) if row else None


def fetchall(result: Result) -> list[Dict[str, Any]]:
    return [dict(r) for r in result.mappings().all()]


def to_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize to UTC before writing (SQLite stores no offset)."""

    if value is None:
        return None
    return ensure_aware(value).astimezone(timezone.utc)


def from_db_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return ensure_aware(value)
