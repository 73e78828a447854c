"""Shared fixtures for vault tests: a temp SQLite database, repositories, and a controllable clock."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from vault.auth.audit import AuditTrail
from vault.auth.models import User
from vault.auth.password import SimpleHasher
from vault.auth.session_store import SqliteSessionStore
from vault.crypto import FieldCipher
from vault.dal.models import Group, GroupMembership, Link, MemberRole
from vault.db import (
    Database,
    SqliteAuditLogRepository,
    SqliteClickRepository,
    SqliteGroupRepository,
    SqliteIdentityRepository,
    SqliteLinkRepository,
    SqliteNotificationRepository,
    SqliteResetTokenRepository,
    SqliteShareRepository,
    SqliteUserRepository,
)

if TYPE_CHECKING:
    from pathlib import Path

START = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)

    def epoch(self) -> float:
        return self.now.timestamp()


def _make_user(user_id: str = "u1", email: str | None = "alice@example.com", **fields) -> User:
    fields.setdefault("password_hash", "simple$unused")
    return User(user_id=user_id, email=email, created_at=START, updated_at=START, **fields)


@pytest.fixture
def make_user():
    """Factory for User records with a placeholder password hash."""
    return _make_user


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def db(tmp_path: Path):
    database = Database(tmp_path / "test.db")
    database.connect()
    yield database
    database.close()


@pytest.fixture
def user_repo(db: Database) -> SqliteUserRepository:
    return SqliteUserRepository(db)


@pytest.fixture
def identity_repo(db: Database) -> SqliteIdentityRepository:
    return SqliteIdentityRepository(db)


@pytest.fixture
def token_repo(db: Database) -> SqliteResetTokenRepository:
    return SqliteResetTokenRepository(db)


@pytest.fixture
def audit_repo(db: Database) -> SqliteAuditLogRepository:
    return SqliteAuditLogRepository(db)


@pytest.fixture
def audit(audit_repo: SqliteAuditLogRepository, clock: FakeClock) -> AuditTrail:
    return AuditTrail(audit_repo, clock=clock)


@pytest.fixture
def hasher() -> SimpleHasher:
    return SimpleHasher()


@pytest.fixture
def session_store(db: Database, clock: FakeClock) -> SqliteSessionStore:
    return SqliteSessionStore(db, clock=clock.epoch)


@pytest.fixture
def cipher() -> FieldCipher:
    return FieldCipher("test-encryption-key")


@pytest.fixture
def link_repo(db: Database, cipher: FieldCipher) -> SqliteLinkRepository:
    return SqliteLinkRepository(db, cipher)


@pytest.fixture
def group_repo(db: Database) -> SqliteGroupRepository:
    return SqliteGroupRepository(db)


@pytest.fixture
def share_repo(db: Database) -> SqliteShareRepository:
    return SqliteShareRepository(db)


@pytest.fixture
def click_repo(db: Database) -> SqliteClickRepository:
    return SqliteClickRepository(db)


@pytest.fixture
def notification_repo(db: Database) -> SqliteNotificationRepository:
    return SqliteNotificationRepository(db)


@pytest.fixture
async def users(user_repo: SqliteUserRepository) -> dict[str, User]:
    """Three stored accounts keyed by first name: alice, bob, carol."""
    created = {}
    for name in ("alice", "bob", "carol"):
        user = _make_user(user_id=name, email=f"{name}@example.com", first_name=name.title())
        await user_repo.create_user(user)
        created[name] = user
    return created


@pytest.fixture
def make_link():
    def _make_link(link_id: str = "link-1", owner_id: str = "alice", **fields) -> Link:
        fields.setdefault("title", "Chase Sapphire")
        fields.setdefault("url", "https://refer.example.com/alice-123")
        fields.setdefault("category", "credit_card")
        fields.setdefault("created_at", START)
        fields.setdefault("updated_at", START)
        return Link(link_id=link_id, owner_id=owner_id, **fields)

    return _make_link


@pytest.fixture
def make_group():
    """Factory returning (group, owner membership) pairs for create_group."""

    def _make_group(group_id: str = "group-1", owner_id: str = "alice", **fields) -> tuple[Group, GroupMembership]:
        fields.setdefault("name", "Family")
        group = Group(group_id=group_id, owner_id=owner_id, created_at=START, updated_at=START, **fields)
        owner = GroupMembership(
            membership_id=f"{group_id}-{owner_id}",
            group_id=group_id,
            user_id=owner_id,
            role=MemberRole.OWNER,
            joined_at=START,
        )
        return group, owner

    return _make_group


@pytest.fixture
def make_member():
    def _make_member(group_id: str, user_id: str, role: MemberRole = MemberRole.MEMBER) -> GroupMembership:
        return GroupMembership(
            membership_id=f"{group_id}-{user_id}",
            group_id=group_id,
            user_id=user_id,
            role=role,
            joined_at=START,
        )

    return _make_member
