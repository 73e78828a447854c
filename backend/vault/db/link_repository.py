"""SQLite-backed link repository with encrypted URL and notes."""

from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

from vault.dal.link_repository import LinkRepository
from vault.dal.models import Link
from vault.db.connection import to_epoch

if TYPE_CHECKING:
    from vault.crypto import FieldCipher
    from vault.db.connection import Database

logger = structlog.get_logger()

_ENCRYPTED_FIELDS = ("url", "notes")


class SqliteLinkRepository(LinkRepository):
    """SQLite implementation of LinkRepository.

    The JSON ``data`` column holds the link with ``url`` and ``notes``
    replaced by Fernet tokens; callers only ever see plaintext.
    """

    def __init__(self, db: Database, cipher: FieldCipher) -> None:
        self._db = db
        self._cipher = cipher
        self._lock = asyncio.Lock()

    def _encode(self, link: Link) -> str:
        data = link.model_dump(mode="json")
        for field in _ENCRYPTED_FIELDS:
            if data[field] is not None:
                data[field] = self._cipher.encrypt(data[field])
        return json.dumps(data)

    def _decode(self, raw: str) -> Link:
        data = json.loads(raw)
        for field in _ENCRYPTED_FIELDS:
            if data.get(field) is not None:
                data[field] = self._cipher.decrypt(data[field])
        return Link.model_validate(data)

    async def create_link(self, link: Link) -> None:
        async with self._lock:
            with self._db.transaction() as conn:
                conn.execute(
                    "INSERT INTO links (id, owner_id, created_at, data) VALUES (?, ?, ?, ?)",
                    (link.link_id, link.owner_id, to_epoch(link.created_at), self._encode(link)),
                )

    async def get_link(self, link_id: str) -> Link | None:
        row = self._db.connection.execute("SELECT data FROM links WHERE id = ?", (link_id,)).fetchone()
        if row is None:
            return None
        return self._decode(row[0])

    async def list_for_owner(self, owner_id: str, *, include_archived: bool = True) -> list[Link]:
        """Owner's links, newest first."""
        sql = "SELECT data FROM links WHERE owner_id = ?"
        if not include_archived:
            sql += " AND json_extract(data, '$.is_archived') = 0"
        rows = self._db.connection.execute(sql + " ORDER BY created_at DESC", (owner_id,)).fetchall()
        return [self._decode(row[0]) for row in rows]

    async def update_link(self, link_id: str, **fields: Any) -> Link | None:  # noqa: ANN401
        async with self._lock:
            current = await self.get_link(link_id)
            if current is None:
                return None
            updated = Link.model_validate({**current.model_dump(), **fields, "updated_at": datetime.now(UTC)})
            with self._db.transaction() as conn:
                conn.execute("UPDATE links SET data = ? WHERE id = ?", (self._encode(updated), link_id))
            return updated

    async def delete_link(self, link_id: str) -> bool:
        async with self._lock:
            with self._db.transaction() as conn:
                cursor = conn.execute("DELETE FROM links WHERE id = ?", (link_id,))
            if cursor.rowcount == 0:
                logger.warning("delete_link had no effect (not found)", link_id=link_id)
            return cursor.rowcount > 0
