"""Abstract interface for groups and their memberships."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from vault.dal.models import Group, GroupMembership


class GroupRepository(ABC):
    @abstractmethod
    async def create_group(self, group: Group, owner_membership: GroupMembership) -> None:
        """Insert a group together with its owner's membership row."""

    @abstractmethod
    async def get_group(self, group_id: str) -> Group | None: ...

    @abstractmethod
    async def list_groups_for_user(self, user_id: str) -> list[Group]:
        """Groups the user owns or is a member of, newest first."""

    @abstractmethod
    async def update_group(self, group_id: str, **fields: Any) -> Group | None: ...  # noqa: ANN401

    @abstractmethod
    async def delete_group(self, group_id: str) -> bool: ...

    @abstractmethod
    async def add_member(self, membership: GroupMembership) -> bool:
        """Add a membership. Returns False if the user is already a member."""

    @abstractmethod
    async def get_group_members(self, group_id: str) -> list[GroupMembership]: ...

    @abstractmethod
    async def list_group_ids_for_user(self, user_id: str) -> set[str]: ...
