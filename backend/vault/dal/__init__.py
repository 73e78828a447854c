"""Data access layer: repository interfaces and shared persistence models."""

from vault.dal.audit_repository import AuditLogRepository
from vault.dal.click_repository import ClickRepository
from vault.dal.group_repository import GroupRepository
from vault.dal.identity_repository import IdentityRepository
from vault.dal.link_repository import LinkRepository
from vault.dal.models import (
    ClickEvent,
    Group,
    GroupMembership,
    GroupType,
    Link,
    MemberRole,
    Notification,
    NotificationType,
    Share,
    ShareTarget,
    Visibility,
)
from vault.dal.notification_repository import NotificationRepository
from vault.dal.share_repository import ShareRepository
from vault.dal.token_repository import ResetTokenRepository
from vault.dal.user_repository import UserRepository

__all__ = [
    "AuditLogRepository",
    "ClickEvent",
    "ClickRepository",
    "Group",
    "GroupMembership",
    "GroupRepository",
    "GroupType",
    "IdentityRepository",
    "Link",
    "LinkRepository",
    "MemberRole",
    "Notification",
    "NotificationRepository",
    "NotificationType",
    "ResetTokenRepository",
    "Share",
    "ShareRepository",
    "ShareTarget",
    "UserRepository",
    "Visibility",
]
