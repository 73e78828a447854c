"""SQLite-backed notification repository."""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

from vault.dal.models import Notification
from vault.dal.notification_repository import NotificationRepository
from vault.db.connection import to_epoch

if TYPE_CHECKING:
    from vault.db.connection import Database


class SqliteNotificationRepository(NotificationRepository):
    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_notifications(self, notifications: list[Notification]) -> None:
        if not notifications:
            return
        async with self._lock:
            with self._db.transaction() as conn:
                conn.executemany(
                    "INSERT INTO notifications (id, user_id, is_read, created_at, data) VALUES (?, ?, ?, ?, ?)",
                    [
                        (n.notification_id, n.user_id, int(n.is_read), to_epoch(n.created_at), n.model_dump_json())
                        for n in notifications
                    ],
                )

    async def list_for_user(self, user_id: str, limit: int = 50) -> list[Notification]:
        rows = self._db.connection.execute(
            "SELECT data FROM notifications WHERE user_id = ? ORDER BY created_at DESC LIMIT ?",
            (user_id, limit),
        ).fetchall()
        return [Notification.model_validate(json.loads(row[0])) for row in rows]

    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        async with self._lock:
            with self._db.transaction() as conn:
                cursor = conn.execute(
                    "UPDATE notifications SET is_read = 1, data = json_set(data, '$.is_read', json('true')) "
                    "WHERE id = ? AND user_id = ?",
                    (notification_id, user_id),
                )
            return cursor.rowcount > 0
