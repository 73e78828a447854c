"""Abstract interface for user persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from vault.auth.models import ExternalIdentity, User


class UserRepository(ABC):
    """Abstract interface for user persistence.

    Implementations can use SQLite, PostgreSQL, etc.
    """

    @abstractmethod
    async def create_user(self, user: User, identity: ExternalIdentity | None = None) -> None:
        """Insert a user, and its first external identity in the same transaction when given.

        Raises ValueError on a duplicate id, email, phone, or provider account.
        """

    @abstractmethod
    async def get_by_id(self, user_id: str) -> User | None: ...

    @abstractmethod
    async def get_by_email(self, email: str) -> User | None: ...

    @abstractmethod
    async def get_by_phone(self, phone: str) -> User | None: ...

    @abstractmethod
    async def update_user(self, user_id: str, **fields: Any) -> User | None:  # noqa: ANN401
        """Apply partial updates and bump updated_at. Returns None for unknown ids."""
