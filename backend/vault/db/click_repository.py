"""SQLite-backed click event repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from typing import TYPE_CHECKING

from vault.dal.click_repository import ClickRepository
from vault.dal.models import ClickEvent
from vault.db.connection import to_epoch

if TYPE_CHECKING:
    from vault.db.connection import Database


class SqliteClickRepository(ClickRepository):
    """SQLite implementation of ClickRepository.

    The event insert and the ``click_count`` bump inside the link's JSON
    record commit together, so the counter always equals the event count.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def record_click(self, event: ClickEvent) -> int:
        async with self._lock:
            try:
                with self._db.transaction() as conn:
                    conn.execute(
                        "INSERT INTO click_events (id, link_id, created_at, data) VALUES (?, ?, ?, ?)",
                        (event.event_id, event.link_id, to_epoch(event.created_at), event.model_dump_json()),
                    )
                    conn.execute(
                        "UPDATE links SET data = json_set(data, '$.click_count', "
                        "  COALESCE(json_extract(data, '$.click_count'), 0) + 1) "
                        "WHERE id = ?",
                        (event.link_id,),
                    )
                    row = conn.execute(
                        "SELECT json_extract(data, '$.click_count') FROM links WHERE id = ?",
                        (event.link_id,),
                    ).fetchone()
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"Link '{event.link_id}' does not exist") from exc
            return int(row[0])

    async def list_for_link(self, link_id: str, limit: int = 100) -> list[ClickEvent]:
        """Events for a link, newest first."""
        rows = self._db.connection.execute(
            "SELECT data FROM click_events WHERE link_id = ? ORDER BY created_at DESC LIMIT ?",
            (link_id, limit),
        ).fetchall()
        return [ClickEvent.model_validate(json.loads(row[0])) for row in rows]
