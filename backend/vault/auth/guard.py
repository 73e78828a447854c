"""Authorization predicates and the repository-backed guard for links, groups, and shares.

Predicates are pure functions over already-loaded records. The guard loads
the record, raises ResourceNotFound when it is absent, and only then
evaluates the predicate, raising AccessDenied with a route-specific message.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from vault.dal.models import ShareTarget
from vault.errors import AccessDenied, ResourceNotFound

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from vault.auth.models import Identity
    from vault.dal.group_repository import GroupRepository
    from vault.dal.link_repository import LinkRepository
    from vault.dal.models import Group, Link, Share
    from vault.dal.share_repository import ShareRepository

ACCESS_DENIED = "Access denied"
LINK_ACTION_DENIED = "Access denied. You must own this link or belong to a group it's shared with."
GROUP_VIEW_DENIED = "Access denied. You must be a group member to view this group."
GROUP_SHARE_DENIED = "Access denied. You must be a member of all target groups to share links with them."


def owns_link(user_id: str, link: Link) -> bool:
    return link.owner_id == user_id


def can_access_group(user_id: str, group: Group, member_ids: Collection[str]) -> bool:
    return group.owner_id == user_id or user_id in member_ids


def can_edit_group(user_id: str, group: Group) -> bool:
    return group.owner_id == user_id


def can_share_to_group(user_id: str, group: Group, member_ids: Collection[str]) -> bool:
    return can_access_group(user_id, group, member_ids)


def can_act_on_link(identity: Identity, link: Link, shares: Iterable[Share], group_ids: Collection[str]) -> bool:
    """True for the owner, members of a group the link is shared with, or a contact it is shared with."""
    if owns_link(identity.user_id, link):
        return True
    for share in shares:
        if share.target_type == ShareTarget.GROUP and share.target_id in group_ids:
            return True
        if share.target_type == ShareTarget.CONTACT and share.target_id in (identity.email, identity.user_id):
            return True
    return False


class AuthorizationGuard:
    def __init__(self, links: LinkRepository, groups: GroupRepository, shares: ShareRepository) -> None:
        self._links = links
        self._groups = groups
        self._shares = shares

    async def _load_link(self, link_id: str) -> Link:
        link = await self._links.get_link(link_id)
        if link is None:
            raise ResourceNotFound("Link not found")
        return link

    async def _load_group(self, group_id: str, not_found: str = "Group not found") -> Group:
        group = await self._groups.get_group(group_id)
        if group is None:
            raise ResourceNotFound(not_found)
        return group

    async def _member_ids(self, group_id: str) -> set[str]:
        return {m.user_id for m in await self._groups.get_group_members(group_id)}

    async def owned_link(self, identity: Identity, link_id: str, denied: str = ACCESS_DENIED) -> Link:
        link = await self._load_link(link_id)
        if not owns_link(identity.user_id, link):
            raise AccessDenied(denied)
        return link

    async def actionable_link(self, identity: Identity, link_id: str) -> Link:
        """Load a link the caller may click through (owner or share recipient)."""
        link = await self._load_link(link_id)
        if owns_link(identity.user_id, link):
            return link
        shares = await self._shares.get_shares_for_link(link_id)
        group_ids = await self._groups.list_group_ids_for_user(identity.user_id)
        if not can_act_on_link(identity, link, shares, group_ids):
            raise AccessDenied(LINK_ACTION_DENIED)
        return link

    async def member_group(self, identity: Identity, group_id: str, denied: str = GROUP_VIEW_DENIED) -> Group:
        group = await self._load_group(group_id)
        if not can_access_group(identity.user_id, group, await self._member_ids(group_id)):
            raise AccessDenied(denied)
        return group

    async def owned_group(self, identity: Identity, group_id: str, denied: str) -> Group:
        group = await self._load_group(group_id)
        if not can_edit_group(identity.user_id, group):
            raise AccessDenied(denied)
        return group

    async def share_target_groups(self, identity: Identity, group_ids: Iterable[str]) -> list[Group]:
        """Load every target group, requiring the caller to belong to all of them."""
        groups = []
        for group_id in group_ids:
            group = await self._load_group(group_id, f"Group {group_id} not found")
            if not can_share_to_group(identity.user_id, group, await self._member_ids(group_id)):
                raise AccessDenied(GROUP_SHARE_DENIED)
            groups.append(group)
        return groups
