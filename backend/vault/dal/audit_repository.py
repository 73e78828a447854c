"""Abstract interface for the append-only auth audit log."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vault.auth.models import AuditLogEntry


class AuditLogRepository(ABC):
    @abstractmethod
    async def append(self, entry: AuditLogEntry) -> None: ...

    @abstractmethod
    async def list_for_user(self, user_id: str, limit: int = 100) -> list[AuditLogEntry]: ...
