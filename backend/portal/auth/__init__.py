"""Portal authentication: Starlette backend, user model, cookie refresh, and route policy."""

from portal.auth.backend import SESSION_COOKIE_NAME, SessionCookieBackend, set_session_cookie
from portal.auth.middleware import SlidingSessionCookieMiddleware
from portal.auth.models import AuthenticatedUser
from portal.auth.policy import protected_api, public_route, validate_route_auth_policy

__all__ = [
    "SESSION_COOKIE_NAME",
    "AuthenticatedUser",
    "SessionCookieBackend",
    "SlidingSessionCookieMiddleware",
    "protected_api",
    "public_route",
    "set_session_cookie",
    "validate_route_auth_policy",
]
