"""Abstract interface for password reset token persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from vault.auth.models import PasswordResetToken


class ResetTokenRepository(ABC):
    @abstractmethod
    async def create_token(self, token: PasswordResetToken) -> None: ...

    @abstractmethod
    async def get_by_hash(self, token_hash: str) -> PasswordResetToken | None: ...

    @abstractmethod
    async def redeem(self, token_hash: str, password_hash: str, now: datetime) -> bool:
        """Consume an unused, unexpired token and set the owner's password as one unit.

        The token flip is a conditional write (only where ``used`` is false and
        the token has not expired) and the credential update commits with it.
        Returns False, with nothing written, when the condition matches no row.
        """

    @abstractmethod
    async def purge_expired(self, now: datetime) -> int: ...
