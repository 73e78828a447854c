"""Persistence models for links, groups, shares, clicks, and notifications.

Field names are snake_case internally; API responses use camelCase aliases
and expose the primary key as ``id``.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Visibility(StrEnum):
    PRIVATE = "private"
    GROUP = "group"
    CONTACTS = "contacts"


class GroupType(StrEnum):
    FAMILY = "family"
    FRIENDS = "friends"
    COLLEAGUES = "colleagues"
    PUBLIC = "public"


class MemberRole(StrEnum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class ShareTarget(StrEnum):
    GROUP = "group"
    CONTACT = "contact"  # target_id holds the contact's email


class NotificationType(StrEnum):
    LINK_SHARED = "link_shared"
    GROUP_INVITE = "group_invite"


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Link(_Record):
    """Referral link. ``url`` and ``notes`` are plaintext here and encrypted at rest."""

    link_id: str = Field(serialization_alias="id")
    owner_id: str
    title: str
    url: str
    institution: str | None = None
    category: str
    notes: str | None = None
    bonus_value: str | None = None  # e.g. "$200", "50,000 points"
    expires_at: datetime | None = None
    visibility: Visibility = Visibility.PRIVATE
    is_archived: bool = False
    click_count: int = 0
    created_at: datetime
    updated_at: datetime


class Group(_Record):
    group_id: str = Field(serialization_alias="id")
    owner_id: str
    name: str
    description: str | None = None
    type: GroupType = GroupType.FRIENDS
    invite_code: str | None = None
    created_at: datetime
    updated_at: datetime


class GroupMembership(_Record):
    membership_id: str = Field(serialization_alias="id")
    group_id: str
    user_id: str
    role: MemberRole = MemberRole.MEMBER
    joined_at: datetime


class Share(_Record):
    share_id: str = Field(serialization_alias="id")
    link_id: str
    shared_by_id: str
    target_type: ShareTarget
    target_id: str
    share_token: str | None = None
    created_at: datetime


class ClickEvent(_Record):
    event_id: str = Field(serialization_alias="id")
    link_id: str
    user_id: str | None = None
    ip_hash: str | None = None
    user_agent_hash: str | None = None
    created_at: datetime


class Notification(_Record):
    notification_id: str = Field(serialization_alias="id")
    user_id: str
    type: NotificationType
    title: str
    message: str
    link_id: str | None = None
    group_id: str | None = None
    is_read: bool = False
    created_at: datetime
