"""SQLite database layer: connection management and repository implementations."""

from vault.db.audit_repository import SqliteAuditLogRepository
from vault.db.click_repository import SqliteClickRepository
from vault.db.connection import Database
from vault.db.group_repository import SqliteGroupRepository
from vault.db.link_repository import SqliteLinkRepository
from vault.db.notification_repository import SqliteNotificationRepository
from vault.db.share_repository import SqliteShareRepository
from vault.db.token_repository import SqliteResetTokenRepository
from vault.db.user_repository import SqliteIdentityRepository, SqliteUserRepository

__all__ = [
    "Database",
    "SqliteAuditLogRepository",
    "SqliteClickRepository",
    "SqliteGroupRepository",
    "SqliteIdentityRepository",
    "SqliteLinkRepository",
    "SqliteNotificationRepository",
    "SqliteResetTokenRepository",
    "SqliteShareRepository",
    "SqliteUserRepository",
]
