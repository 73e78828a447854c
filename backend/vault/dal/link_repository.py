"""Abstract interface for referral link persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from vault.dal.models import Link


class LinkRepository(ABC):
    """Links are handed out decrypted; implementations encrypt url and notes at rest."""

    @abstractmethod
    async def create_link(self, link: Link) -> None: ...

    @abstractmethod
    async def get_link(self, link_id: str) -> Link | None: ...

    @abstractmethod
    async def list_for_owner(self, owner_id: str, *, include_archived: bool = True) -> list[Link]: ...

    @abstractmethod
    async def update_link(self, link_id: str, **fields: Any) -> Link | None: ...  # noqa: ANN401

    @abstractmethod
    async def delete_link(self, link_id: str) -> bool:
        """Delete a link with its shares and click events. Returns False if absent."""
