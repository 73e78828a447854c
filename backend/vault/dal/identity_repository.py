"""Abstract interface for external identity (OAuth account link) persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from vault.auth.models import ExternalIdentity


class IdentityRepository(ABC):
    @abstractmethod
    async def create_identity(self, identity: ExternalIdentity) -> None:
        """Insert a link. Raises ValueError if (provider, provider_account_id) is taken."""

    @abstractmethod
    async def get_identity(self, provider: str, provider_account_id: str) -> ExternalIdentity | None: ...

    @abstractmethod
    async def update_identity(self, identity_id: str, **fields: Any) -> ExternalIdentity | None: ...  # noqa: ANN401

    @abstractmethod
    async def list_for_user(self, user_id: str) -> list[ExternalIdentity]: ...
