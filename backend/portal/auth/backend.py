"""Starlette AuthenticationBackend that validates signed session cookies."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.authentication import AuthCredentials, AuthenticationBackend
from starlette.responses import Response

from portal.auth.models import AuthenticatedUser

if TYPE_CHECKING:
    from starlette.requests import HTTPConnection

    from vault.auth.service import AuthService
    from vault.auth.settings import VaultSettings

SESSION_COOKIE_NAME = "session_id"


def set_session_cookie(response: Response, cookie_value: str, settings: VaultSettings) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=cookie_value,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        max_age=settings.session_ttl_seconds,
        path="/",
    )


def session_cookie_header(cookie_value: str, settings: VaultSettings) -> tuple[bytes, bytes]:
    """Raw ``set-cookie`` header carrying the session cookie, for ASGI-level writers."""
    response = Response()
    set_session_cookie(response, cookie_value, settings)
    return b"set-cookie", response.headers["set-cookie"].encode("latin-1")


class SessionCookieBackend(AuthenticationBackend):
    """Authenticate requests via the signed ``session_id`` cookie.

    A missing, forged, unknown, or expired cookie leaves the request
    anonymous; route policy decides whether that is a 401.
    """

    def __init__(self, auth_service: AuthService) -> None:
        self._auth_service = auth_service

    async def authenticate(
        self,
        conn: HTTPConnection,
    ) -> tuple[AuthCredentials, AuthenticatedUser] | None:
        session = self._auth_service.validate_session(conn.cookies.get(SESSION_COOKIE_NAME))
        if session is None:
            return None
        return AuthCredentials(["authenticated"]), AuthenticatedUser(session.identity, session.session_id)
