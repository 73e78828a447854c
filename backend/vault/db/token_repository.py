"""SQLite-backed password reset token repository."""

from __future__ import annotations

import asyncio
import sqlite3
from typing import TYPE_CHECKING

import structlog

from vault.auth.models import PasswordResetToken
from vault.dal.token_repository import ResetTokenRepository
from vault.db.connection import from_epoch, to_epoch

if TYPE_CHECKING:
    from datetime import datetime

    from vault.db.connection import Database

logger = structlog.get_logger()

_COLUMNS = "id, user_id, token_hash, expires_at, used, created_at"


def _row_to_token(row: tuple) -> PasswordResetToken:
    return PasswordResetToken(
        token_id=row[0],
        user_id=row[1],
        token_hash=row[2],
        expires_at=from_epoch(row[3]),
        used=bool(row[4]),
        created_at=from_epoch(row[5]),
    )


class SqliteResetTokenRepository(ResetTokenRepository):
    """SQLite implementation of ResetTokenRepository.

    Redemption flips ``used`` with a conditional UPDATE and rewrites the
    owner's credential fields in the same transaction, so a token is
    consumed at most once and never without the new password landing.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_token(self, token: PasswordResetToken) -> None:
        async with self._lock:
            try:
                with self._db.transaction() as conn:
                    conn.execute(
                        f"INSERT INTO password_reset_tokens ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",  # noqa: S608
                        (
                            token.token_id,
                            token.user_id,
                            token.token_hash,
                            to_epoch(token.expires_at),
                            int(token.used),
                            to_epoch(token.created_at),
                        ),
                    )
            except sqlite3.IntegrityError as exc:
                raise ValueError("Reset token already exists") from exc

    async def get_by_hash(self, token_hash: str) -> PasswordResetToken | None:
        row = self._db.connection.execute(
            f"SELECT {_COLUMNS} FROM password_reset_tokens WHERE token_hash = ?",  # noqa: S608
            (token_hash,),
        ).fetchone()
        if row is None:
            return None
        return _row_to_token(row)

    async def redeem(self, token_hash: str, password_hash: str, now: datetime) -> bool:
        async with self._lock:
            with self._db.transaction() as conn:
                cursor = conn.execute(
                    "UPDATE password_reset_tokens SET used = 1 WHERE token_hash = ? AND used = 0 AND expires_at > ?",
                    (token_hash, to_epoch(now)),
                )
                if cursor.rowcount == 0:
                    return False
                conn.execute(
                    "UPDATE users SET data = json_set(data, "
                    "  '$.password_hash', ?, "
                    "  '$.failed_login_attempts', 0, "
                    "  '$.account_locked_until', NULL, "
                    "  '$.updated_at', ? "
                    ") "
                    "WHERE id = (SELECT user_id FROM password_reset_tokens WHERE token_hash = ?)",
                    (password_hash, now.isoformat(), token_hash),
                )
            return True

    async def purge_expired(self, now: datetime) -> int:
        async with self._lock:
            with self._db.transaction() as conn:
                cursor = conn.execute(
                    "DELETE FROM password_reset_tokens WHERE expires_at <= ?",
                    (to_epoch(now),),
                )
            if cursor.rowcount:
                logger.info("purged expired reset tokens", count=cursor.rowcount)
            return cursor.rowcount
