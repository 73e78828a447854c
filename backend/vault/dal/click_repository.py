"""Abstract interface for click analytics events."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vault.dal.models import ClickEvent


class ClickRepository(ABC):
    @abstractmethod
    async def record_click(self, event: ClickEvent) -> int:
        """Insert the event and increment the link's click counter in one transaction.

        Returns the new counter value. Raises ValueError for an unknown link.
        """

    @abstractmethod
    async def list_for_link(self, link_id: str, limit: int = 100) -> list[ClickEvent]: ...
