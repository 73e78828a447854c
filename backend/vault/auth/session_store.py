"""SQLite-backed session store with periodic expiry cleanup."""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

from vault.auth.models import AuthSession, Identity
from vault.auth.settings import SEVEN_DAYS_SECONDS

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from vault.db.connection import Database

CLEANUP_INTERVAL_SECONDS = 300  # 5 minutes

logger = structlog.get_logger()


class SqliteSessionStore:
    """Durable session store keyed by an opaque random id.

    Each row holds only the Identity projection, so no credential material
    is ever persisted with a session. Sessions survive restarts.
    Call start_cleanup() on app startup and stop_cleanup() on shutdown.
    """

    def __init__(
        self,
        db: Database,
        *,
        ttl_seconds: int = SEVEN_DAYS_SECONDS,
        sliding: bool = True,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._db = db
        self._ttl_seconds = ttl_seconds
        self._sliding = sliding
        self._clock = clock
        self._cleanup_task: asyncio.Task[None] | None = None

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def _now(self) -> float:
        return self._clock() if self._clock is not None else time.time()

    def establish(self, identity: Identity) -> AuthSession:
        """Create a session for an authenticated identity."""
        now = self._now()
        session = AuthSession(
            session_id=uuid4().hex,
            identity=identity,
            created_at=now,
            expires_at=now + self._ttl_seconds,
        )
        conn = self._db.connection
        conn.execute(
            "INSERT INTO sessions (id, user_id, created_at, expires_at, identity) VALUES (?, ?, ?, ?, ?)",
            (session.session_id, identity.user_id, session.created_at, session.expires_at, identity.model_dump_json()),
        )
        conn.commit()
        return session

    def resolve(self, session_id: str) -> AuthSession | None:
        """Return a valid (non-expired) session, or None. Sliding sessions are extended."""
        conn = self._db.connection
        row = conn.execute(
            "SELECT created_at, expires_at, identity FROM sessions WHERE id = ?",
            (session_id,),
        ).fetchone()
        if row is None:
            return None
        created_at, expires_at, identity_json = row
        now = self._now()
        if now >= expires_at:
            conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
            conn.commit()
            return None
        if self._sliding:
            expires_at = now + self._ttl_seconds
            conn.execute("UPDATE sessions SET expires_at = ? WHERE id = ?", (expires_at, session_id))
            conn.commit()
        return AuthSession(
            session_id=session_id,
            identity=Identity.model_validate_json(identity_json),
            created_at=created_at,
            expires_at=expires_at,
        )

    def destroy(self, session_id: str) -> None:
        """Remove a session (logout). Unknown ids are ignored."""
        conn = self._db.connection
        conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
        conn.commit()

    def cleanup_expired(self) -> int:
        """Remove all expired sessions. Return count of removed sessions."""
        conn = self._db.connection
        cursor = conn.execute("DELETE FROM sessions WHERE expires_at <= ?", (self._now(),))
        conn.commit()
        if cursor.rowcount:
            logger.info("cleaned up expired sessions", count=cursor.rowcount)
        return cursor.rowcount

    def start_cleanup(self, *sweeps: Callable[[], Awaitable[Any]]) -> None:
        """Start the periodic cleanup task. Extra sweeps run on the same schedule."""
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop(sweeps))

    async def stop_cleanup(self) -> None:
        """Stop the periodic cleanup background task."""
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None

    async def _cleanup_loop(self, sweeps: tuple[Callable[[], Awaitable[Any]], ...]) -> None:
        while True:
            await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
            self.cleanup_expired()
            for sweep in sweeps:
                try:
                    await sweep()
                except Exception:
                    logger.exception("cleanup sweep failed")
