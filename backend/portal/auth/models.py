"""User model for Starlette AuthenticationMiddleware integration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.authentication import BaseUser

if TYPE_CHECKING:
    from vault.auth.models import Identity


class AuthenticatedUser(BaseUser):
    """Authenticated user for Starlette's request.user.

    Created by the auth backend from a valid session cookie; ``account`` is
    the Identity projection stored in the session.
    """

    def __init__(self, account: Identity, session_id: str) -> None:
        self._account = account
        self._session_id = session_id

    @property
    def is_authenticated(self) -> bool:  # pragma: no cover
        return True

    @property
    def display_name(self) -> str:
        return self._account.display_name

    @property
    def identity(self) -> str:  # pragma: no cover
        return self._account.user_id

    @property
    def account(self) -> Identity:
        return self._account

    @property
    def user_id(self) -> str:
        return self._account.user_id

    @property
    def session_id(self) -> str:
        return self._session_id
