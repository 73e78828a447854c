"""Tests for the sliding session cookie refresh middleware."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.applications import Starlette
from starlette.authentication import AuthCredentials, AuthenticationBackend, SimpleUser
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from portal.auth.backend import SESSION_COOKIE_NAME
from portal.auth.middleware import SlidingSessionCookieMiddleware
from vault.auth.settings import VaultSettings

if TYPE_CHECKING:
    from starlette.requests import HTTPConnection, Request

GOOD_COOKIE = "sess-1.c2lnbmF0dXJl"


class _CookieBackend(AuthenticationBackend):
    async def authenticate(self, conn: HTTPConnection):
        if conn.cookies.get(SESSION_COOKIE_NAME) == GOOD_COOKIE:
            return AuthCredentials(["authenticated"]), SimpleUser("alice")
        return None


def _make_app(**settings) -> Starlette:
    async def index(request: Request) -> JSONResponse:
        return JSONResponse({"ok": True})

    async def logout(request: Request) -> JSONResponse:
        response = JSONResponse({"success": True})
        response.delete_cookie(SESSION_COOKIE_NAME, path="/")
        return response

    app = Starlette(routes=[Route("/", index), Route("/logout", logout, methods=["POST"])])
    app.add_middleware(AuthenticationMiddleware, backend=_CookieBackend())  # type: ignore[arg-type]
    app.add_middleware(
        SlidingSessionCookieMiddleware,  # type: ignore[arg-type]
        settings=VaultSettings(session_secret="s", encryption_key="k", **settings),
    )
    return app


class TestSlidingSessionCookieMiddleware:
    def test_reissues_cookie_for_authenticated_request(self):
        client = TestClient(_make_app(session_ttl_seconds=3600, cookie_secure=True))
        client.cookies.set(SESSION_COOKIE_NAME, GOOD_COOKIE)

        set_cookie = client.get("/").headers["set-cookie"]

        assert set_cookie.startswith(f"{SESSION_COOKIE_NAME}={GOOD_COOKIE};")
        assert "Max-Age=3600" in set_cookie
        assert "Secure" in set_cookie
        assert "HttpOnly" in set_cookie

    def test_anonymous_request_untouched(self):
        client = TestClient(_make_app())

        assert "set-cookie" not in client.get("/").headers

    def test_invalid_cookie_not_echoed(self):
        client = TestClient(_make_app())
        client.cookies.set(SESSION_COOKIE_NAME, "forged.c2ln")

        assert "set-cookie" not in client.get("/").headers

    def test_disabled_without_sliding(self):
        client = TestClient(_make_app(session_sliding=False))
        client.cookies.set(SESSION_COOKIE_NAME, GOOD_COOKIE)

        assert "set-cookie" not in client.get("/").headers

    def test_response_setting_session_cookie_wins(self):
        client = TestClient(_make_app())
        client.cookies.set(SESSION_COOKIE_NAME, GOOD_COOKIE)

        cookies = client.post("/logout").headers.get_list("set-cookie")

        assert len(cookies) == 1
        assert "Max-Age=0" in cookies[0]
