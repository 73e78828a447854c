"""Abstract interface for link shares."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vault.dal.models import Share


class ShareRepository(ABC):
    @abstractmethod
    async def create_share(self, share: Share) -> None: ...

    @abstractmethod
    async def get_shares_for_link(self, link_id: str) -> list[Share]: ...
