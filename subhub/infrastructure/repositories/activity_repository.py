"""Repository for the append-only activity (audit) log."""

import json
import sqlite3
from contextlib import closing

from subhub.domain.models.activity import ActivityRecord


class ActivityRepository:
    """Writes ActivityRecord entries to SQLite."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._initialize_table()

    def _initialize_table(self) -> None:
        """Create activity_logs table if it doesn't exist."""
        with closing(sqlite3.connect(self.db_path)) as conn, conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS activity_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT,
                    action TEXT NOT NULL,
                    resource_type TEXT,
                    resource_id TEXT,
                    ip_address TEXT,
                    user_agent TEXT,
                    metadata TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_activity_logs_created_at ON activity_logs(created_at)"
            )

    def append(self, record: ActivityRecord) -> None:
        """Insert one audit record."""
        metadata = json.dumps(record.metadata, default=str, ensure_ascii=False)
        with closing(sqlite3.connect(self.db_path)) as conn, conn:
            conn.execute(
                """
                INSERT INTO activity_logs (
                    user_id, action, resource_type, resource_id,
                    ip_address, user_agent, metadata, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.user_id,
                    record.action,
                    record.resource_type,
                    record.resource_id,
                    record.ip_address,
                    record.user_agent,
                    metadata,
                    record.created_at.isoformat(),
                ),
            )
