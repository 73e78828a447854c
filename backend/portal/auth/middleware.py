"""Session cookie refresh for sliding sessions.

The server pushes a session's expiry forward whenever it is resolved, so the
browser cookie's Max-Age has to move with it or the cookie would lapse while
the session is still live. Responses to authenticated requests re-issue the
same signed value with a fresh Max-Age.
"""

from __future__ import annotations

from http.cookies import CookieError, SimpleCookie
from typing import TYPE_CHECKING

from portal.auth.backend import SESSION_COOKIE_NAME, session_cookie_header

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

    from vault.auth.settings import VaultSettings


class SlidingSessionCookieMiddleware:
    """Re-issue the session cookie on authenticated responses.

    Must wrap AuthenticationMiddleware so ``scope["user"]`` is populated by
    the time the response starts. Responses that already set the session
    cookie (login, logout) are left alone.
    """

    def __init__(self, app: ASGIApp, settings: VaultSettings) -> None:
        self.app = app
        self._settings = settings

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not self._settings.session_sliding:
            await self.app(scope, receive, send)
            return

        async def send_with_cookie(message: Message) -> None:
            if message["type"] == "http.response.start":
                user = scope.get("user")
                cookie_value = _get_cookie_from_scope(scope, SESSION_COOKIE_NAME)
                headers = list(message.get("headers", []))
                if (
                    user is not None
                    and user.is_authenticated
                    and cookie_value
                    and not _sets_session_cookie(headers)
                ):
                    headers.append(session_cookie_header(cookie_value, self._settings))
                    message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_with_cookie)


def _sets_session_cookie(headers: list[tuple[bytes, bytes]]) -> bool:
    prefix = f"{SESSION_COOKIE_NAME}=".encode("latin-1")
    return any(name.lower() == b"set-cookie" and value.startswith(prefix) for name, value in headers)


def _get_cookie_from_scope(scope: Scope, name: str) -> str | None:
    """Extract a cookie value from the ASGI scope headers."""
    for header_name, header_value in scope.get("headers", []):
        if header_name == b"cookie":
            try:
                cookie = SimpleCookie(header_value.decode("latin-1"))
            except CookieError:
                continue
            morsel = cookie.get(name)
            if morsel is not None:
                return morsel.value
    return None
