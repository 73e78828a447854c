"""SQLite-backed group and membership repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from vault.dal.group_repository import GroupRepository
from vault.dal.models import Group, GroupMembership, MemberRole
from vault.db.connection import from_epoch, to_epoch

if TYPE_CHECKING:
    from vault.db.connection import Database

_MEMBER_COLUMNS = "id, group_id, user_id, role, joined_at"


def _row_to_membership(row: tuple) -> GroupMembership:
    return GroupMembership(
        membership_id=row[0],
        group_id=row[1],
        user_id=row[2],
        role=MemberRole(row[3]),
        joined_at=from_epoch(row[4]),
    )


def _insert_membership(conn: sqlite3.Connection, membership: GroupMembership) -> None:
    conn.execute(
        f"INSERT INTO group_memberships ({_MEMBER_COLUMNS}) VALUES (?, ?, ?, ?, ?)",  # noqa: S608
        (
            membership.membership_id,
            membership.group_id,
            membership.user_id,
            membership.role.value,
            to_epoch(membership.joined_at),
        ),
    )


class SqliteGroupRepository(GroupRepository):
    """SQLite implementation of GroupRepository.

    Groups live in ``user_groups`` as JSON with the owner and invite code
    indexed; memberships are plain rows with a unique (group, user) pair.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def create_group(self, group: Group, owner_membership: GroupMembership) -> None:
        async with self._lock:
            try:
                with self._db.transaction() as conn:
                    conn.execute(
                        "INSERT INTO user_groups (id, owner_id, invite_code, created_at, data) VALUES (?, ?, ?, ?, ?)",
                        (
                            group.group_id,
                            group.owner_id,
                            group.invite_code,
                            to_epoch(group.created_at),
                            group.model_dump_json(),
                        ),
                    )
                    _insert_membership(conn, owner_membership)
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"Group '{group.group_id}' could not be created: {exc}") from exc

    async def get_group(self, group_id: str) -> Group | None:
        row = self._db.connection.execute("SELECT data FROM user_groups WHERE id = ?", (group_id,)).fetchone()
        if row is None:
            return None
        return Group.model_validate(json.loads(row[0]))

    async def list_groups_for_user(self, user_id: str) -> list[Group]:
        rows = self._db.connection.execute(
            "SELECT data FROM user_groups WHERE owner_id = ? "
            "OR id IN (SELECT group_id FROM group_memberships WHERE user_id = ?) "
            "ORDER BY created_at DESC",
            (user_id, user_id),
        ).fetchall()
        return [Group.model_validate(json.loads(row[0])) for row in rows]

    async def update_group(self, group_id: str, **fields: Any) -> Group | None:  # noqa: ANN401
        async with self._lock:
            current = await self.get_group(group_id)
            if current is None:
                return None
            updated = Group.model_validate({**current.model_dump(), **fields, "updated_at": datetime.now(UTC)})
            with self._db.transaction() as conn:
                conn.execute(
                    "UPDATE user_groups SET invite_code = ?, data = ? WHERE id = ?",
                    (updated.invite_code, updated.model_dump_json(), group_id),
                )
            return updated

    async def delete_group(self, group_id: str) -> bool:
        async with self._lock:
            with self._db.transaction() as conn:
                cursor = conn.execute("DELETE FROM user_groups WHERE id = ?", (group_id,))
            return cursor.rowcount > 0

    async def add_member(self, membership: GroupMembership) -> bool:
        async with self._lock:
            try:
                with self._db.transaction() as conn:
                    _insert_membership(conn, membership)
            except sqlite3.IntegrityError as exc:
                if "UNIQUE" in str(exc):
                    return False
                raise ValueError(str(exc)) from exc
            return True

    async def get_group_members(self, group_id: str) -> list[GroupMembership]:
        rows = self._db.connection.execute(
            f"SELECT {_MEMBER_COLUMNS} FROM group_memberships WHERE group_id = ? ORDER BY joined_at",  # noqa: S608
            (group_id,),
        ).fetchall()
        return [_row_to_membership(row) for row in rows]

    async def list_group_ids_for_user(self, user_id: str) -> set[str]:
        rows = self._db.connection.execute(
            "SELECT group_id FROM group_memberships WHERE user_id = ?",
            (user_id,),
        ).fetchall()
        return {row[0] for row in rows}
