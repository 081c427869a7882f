from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table

metadata = MetaData()

# sqlite_autoincrement keeps ids monotonic: SQLite never reuses a rowid.
attendance_records = Table(
    "attendance_records",
    metadata,
    Column("record_id", Integer, primary_key=True, autoincrement=True),
    Column("first_name", String(120), nullable=False),
    Column("last_name", String(120), nullable=False),
    Column("timestamp", DateTime(timezone=True), nullable=False, index=True),
    Column("action", String(32), nullable=False),
    Column("action_label", String(64), nullable=False),
    Column("sync_status", String(16), nullable=False, index=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("synced_at", DateTime(timezone=True), nullable=True),
    sqlite_autoincrement=True,
)
