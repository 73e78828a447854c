"""Abstract interface for in-app notifications."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vault.dal.models import Notification


class NotificationRepository(ABC):
    @abstractmethod
    async def create_notifications(self, notifications: list[Notification]) -> None: ...

    @abstractmethod
    async def list_for_user(self, user_id: str, limit: int = 50) -> list[Notification]: ...

    @abstractmethod
    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        """Mark one of the user's notifications read. Returns False if the user has no such notification."""
