"""SQLite-backed share repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from typing import TYPE_CHECKING

from vault.dal.models import Share
from vault.dal.share_repository import ShareRepository
from vault.db.connection import to_epoch

if TYPE_CHECKING:
    from vault.db.connection import Database


class SqliteShareRepository(ShareRepository):
    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_share(self, share: Share) -> None:
        """Insert a share. Raises ValueError if the link no longer exists."""
        async with self._lock:
            try:
                with self._db.transaction() as conn:
                    conn.execute(
                        "INSERT INTO shares (id, link_id, target_type, target_id, created_at, data) "
                        "VALUES (?, ?, ?, ?, ?, ?)",
                        (
                            share.share_id,
                            share.link_id,
                            share.target_type.value,
                            share.target_id,
                            to_epoch(share.created_at),
                            share.model_dump_json(),
                        ),
                    )
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"Share for link '{share.link_id}' could not be created") from exc

    async def get_shares_for_link(self, link_id: str) -> list[Share]:
        rows = self._db.connection.execute(
            "SELECT data FROM shares WHERE link_id = ? ORDER BY created_at",
            (link_id,),
        ).fetchall()
        return [Share.model_validate(json.loads(row[0])) for row in rows]
