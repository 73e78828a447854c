"""SQLite-backed append-only audit log."""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

from vault.auth.models import AuditLogEntry
from vault.dal.audit_repository import AuditLogRepository
from vault.db.connection import to_epoch

if TYPE_CHECKING:
    from vault.db.connection import Database


class SqliteAuditLogRepository(AuditLogRepository):
    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def append(self, entry: AuditLogEntry) -> None:
        async with self._lock:
            with self._db.transaction() as conn:
                conn.execute(
                    "INSERT INTO audit_log (id, user_id, action, created_at, data) VALUES (?, ?, ?, ?, ?)",
                    (
                        entry.entry_id,
                        entry.user_id,
                        entry.action.value,
                        to_epoch(entry.created_at),
                        entry.model_dump_json(),
                    ),
                )

    async def list_for_user(self, user_id: str, limit: int = 100) -> list[AuditLogEntry]:
        """Entries for a user, newest first."""
        rows = self._db.connection.execute(
            "SELECT data FROM audit_log WHERE user_id = ? ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (user_id, limit),
        ).fetchall()
        return [AuditLogEntry.model_validate(json.loads(row[0])) for row in rows]
