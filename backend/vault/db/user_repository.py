"""SQLite-backed user and external identity repositories."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

from vault.auth.models import ExternalIdentity, User
from vault.dal.identity_repository import IdentityRepository
from vault.dal.user_repository import UserRepository

if TYPE_CHECKING:
    from vault.db.connection import Database

logger = structlog.get_logger()


def _integrity_message(exc: sqlite3.IntegrityError, user: User) -> str:
    error_msg = str(exc).lower()
    if "users.id" in error_msg:
        return f"User with id '{user.user_id}' already exists"
    if "users.email" in error_msg or "idx_users_email" in error_msg:
        return "Email already registered"
    if "users.phone" in error_msg or "idx_users_phone" in error_msg:
        return "Phone number already registered"
    if "external_identities" in error_msg:
        return "Provider account already linked"
    return str(exc)  # pragma: no cover


class SqliteUserRepository(UserRepository):
    """SQLite implementation of UserRepository.

    Uses a single INSERT under an asyncio lock to avoid race windows
    between existence checks and inserts. Relies on the unique indexes on
    email and phone and maps IntegrityError to domain ValueError.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_user(self, user: User, identity: ExternalIdentity | None = None) -> None:
        """Insert a user, plus its first external identity atomically when given."""
        async with self._lock:
            try:
                with self._db.transaction() as conn:
                    conn.execute(
                        "INSERT INTO users (id, email, phone, data) VALUES (?, ?, ?, ?)",
                        (user.user_id, user.email, user.phone, user.model_dump_json()),
                    )
                    if identity is not None:
                        _insert_identity(conn, identity)
            except sqlite3.IntegrityError as exc:
                raise ValueError(_integrity_message(exc, user)) from exc

    async def get_by_id(self, user_id: str) -> User | None:
        return self._fetch_one("SELECT data FROM users WHERE id = ?", (user_id,))

    async def get_by_email(self, email: str) -> User | None:
        """Look up a user by email (exact match)."""
        return self._fetch_one("SELECT data FROM users WHERE email = ?", (email,))

    async def get_by_phone(self, phone: str) -> User | None:
        return self._fetch_one("SELECT data FROM users WHERE phone = ?", (phone,))

    async def update_user(self, user_id: str, **fields: Any) -> User | None:  # noqa: ANN401
        """Merge ``fields`` into the stored record, revalidate, and write it back."""
        async with self._lock:
            current = self._fetch_one("SELECT data FROM users WHERE id = ?", (user_id,))
            if current is None:
                logger.warning("update_user had no effect (not found)", user_id=user_id)
                return None
            merged = {**current.model_dump(), **fields, "updated_at": datetime.now(UTC)}
            updated = User.model_validate(merged)
            try:
                with self._db.transaction() as conn:
                    conn.execute(
                        "UPDATE users SET email = ?, phone = ?, data = ? WHERE id = ?",
                        (updated.email, updated.phone, updated.model_dump_json(), user_id),
                    )
            except sqlite3.IntegrityError as exc:
                raise ValueError(_integrity_message(exc, updated)) from exc
            return updated

    def _fetch_one(self, sql: str, params: tuple[Any, ...]) -> User | None:
        row = self._db.connection.execute(sql, params).fetchone()
        if row is None:
            return None
        return User.model_validate(json.loads(row[0]))


def _insert_identity(conn: sqlite3.Connection, identity: ExternalIdentity) -> None:
    conn.execute(
        "INSERT INTO external_identities (id, user_id, provider, provider_account_id, data) VALUES (?, ?, ?, ?, ?)",
        (
            identity.identity_id,
            identity.user_id,
            identity.provider,
            identity.provider_account_id,
            identity.model_dump_json(),
        ),
    )


class SqliteIdentityRepository(IdentityRepository):
    """SQLite implementation of IdentityRepository.

    The (provider, provider_account_id) unique index is the arbiter for
    concurrent first logins; the loser sees ValueError.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_identity(self, identity: ExternalIdentity) -> None:
        async with self._lock:
            try:
                with self._db.transaction() as conn:
                    _insert_identity(conn, identity)
            except sqlite3.IntegrityError as exc:
                raise ValueError(
                    f"{identity.provider} account '{identity.provider_account_id}' already linked",
                ) from exc

    async def get_identity(self, provider: str, provider_account_id: str) -> ExternalIdentity | None:
        row = self._db.connection.execute(
            "SELECT data FROM external_identities WHERE provider = ? AND provider_account_id = ?",
            (provider, provider_account_id),
        ).fetchone()
        if row is None:
            return None
        return ExternalIdentity.model_validate(json.loads(row[0]))

    async def update_identity(self, identity_id: str, **fields: Any) -> ExternalIdentity | None:  # noqa: ANN401
        async with self._lock:
            row = self._db.connection.execute(
                "SELECT data FROM external_identities WHERE id = ?",
                (identity_id,),
            ).fetchone()
            if row is None:
                return None
            current = ExternalIdentity.model_validate(json.loads(row[0]))
            updated = ExternalIdentity.model_validate(
                {**current.model_dump(), **fields, "updated_at": datetime.now(UTC)},
            )
            with self._db.transaction() as conn:
                conn.execute(
                    "UPDATE external_identities SET data = ? WHERE id = ?",
                    (updated.model_dump_json(), identity_id),
                )
            return updated

    async def list_for_user(self, user_id: str) -> list[ExternalIdentity]:
        rows = self._db.connection.execute(
            "SELECT data FROM external_identities WHERE user_id = ? ORDER BY provider",
            (user_id,),
        ).fetchall()
        return [ExternalIdentity.model_validate(json.loads(row[0])) for row in rows]
