"""Auth endpoints: signup, login, logout, OAuth, password reset, and current user."""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING

import structlog
from starlette.background import BackgroundTask
from starlette.responses import JSONResponse, RedirectResponse, Response

from portal.auth.backend import SESSION_COOKIE_NAME, set_session_cookie
from portal.views.helpers import client_info, dump, parse_body
from portal.views.schemas import ForgotPasswordRequest, LoginRequest, ResetPasswordRequest, SignupRequest
from vault.auth.service import LoginRejected, RejectReason
from vault.auth.signing import sign_value, unsign_value
from vault.errors import AccountLinkRequired, AccountLocked, AuthenticationFailure, OAuthError, ResourceNotFound

if TYPE_CHECKING:
    from starlette.requests import Request

    from vault.auth.models import AuthSession, Identity
    from vault.auth.providers import ProviderConfig
    from vault.auth.settings import VaultSettings

logger = structlog.get_logger()

OAUTH_STATE_COOKIE_NAME = "oauth_state"
OAUTH_STATE_TTL_SECONDS = 600

# Same body whether or not the email exists.
FORGOT_PASSWORD_BODY = {"message": "If an account exists for that email, a reset link has been sent."}


def _identity_response(request: Request, identity: Identity, session: AuthSession, status_code: int) -> Response:
    auth_service = request.app.state.auth_service
    response = JSONResponse(dump(identity), status_code=status_code)
    set_session_cookie(response, auth_service.session_cookie_value(session), request.app.state.vault_settings)
    return response


def _provider_or_404(request: Request) -> ProviderConfig:
    name = request.path_params["provider"]
    config = request.app.state.providers.get(name)
    if config is None:
        raise ResourceNotFound(f"Unknown provider: {name}")
    return config


async def signup(request: Request) -> Response:
    """POST /api/auth/signup - create a local account and start a session."""
    body = await parse_body(request, SignupRequest)
    session = await request.app.state.auth_service.signup(
        email=body.email,
        phone=body.phone,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        client=client_info(request),
    )
    return _identity_response(request, session.identity, session, status_code=201)


async def login(request: Request) -> Response:
    """POST /api/auth/login - verify credentials under the lockout policy."""
    body = await parse_body(request, LoginRequest)
    result = await request.app.state.auth_service.login(body.email, body.password, client_info(request))
    if isinstance(result, LoginRejected):
        if result.reason == RejectReason.ACCOUNT_LOCKED:
            raise AccountLocked(result.message)
        raise AuthenticationFailure(result.message)
    return _identity_response(request, result.identity, result.session, status_code=200)


async def logout(request: Request) -> Response:
    """POST /api/auth/logout - destroy the session and clear the cookie."""
    await request.app.state.auth_service.logout(request.cookies.get(SESSION_COOKIE_NAME), client_info(request))
    response = JSONResponse({"success": True})
    response.delete_cookie(key=SESSION_COOKIE_NAME, path="/")
    return response


async def current_user(request: Request) -> Response:
    """GET /api/auth/user - the caller's identity, or null when anonymous."""
    if not request.user.is_authenticated:
        return JSONResponse(None)
    return JSONResponse(dump(request.user.account))


async def forgot_password(request: Request) -> Response:
    """POST /api/auth/forgot-password - issue a reset token; the reply never reveals whether the email exists."""
    body = await parse_body(request, ForgotPasswordRequest)
    issued = await request.app.state.reset_flow.request_reset(body.email, client_info(request))
    response = JSONResponse(FORGOT_PASSWORD_BODY)
    if issued is not None:
        response.background = BackgroundTask(request.app.state.reset_mailer.send_reset, issued)
    return response


async def reset_password(request: Request) -> Response:
    """POST /api/auth/reset-password - redeem a reset token."""
    body = await parse_body(request, ResetPasswordRequest)
    await request.app.state.reset_flow.redeem(body.token, body.new_password, client_info(request))
    return JSONResponse({"success": True, "message": "Password has been reset"})


async def list_providers(request: Request) -> Response:
    """GET /api/auth/providers - names of the configured OAuth providers."""
    return JSONResponse({"providers": request.app.state.providers.names()})


async def oauth_start(request: Request) -> Response:
    """GET /api/auth/{provider} - redirect to the provider with a signed state cookie."""
    config = _provider_or_404(request)
    settings: VaultSettings = request.app.state.vault_settings
    state = secrets.token_urlsafe(24)
    response = RedirectResponse(config.authorization_url(state), status_code=302)
    response.set_cookie(
        key=OAUTH_STATE_COOKIE_NAME,
        value=sign_value(state, settings.session_secret),
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        max_age=OAUTH_STATE_TTL_SECONDS,
        path="/api/auth",
    )
    return response


def _oauth_failure(error: str) -> Response:
    response = RedirectResponse(f"/login?error={error}", status_code=302)
    response.delete_cookie(key=OAUTH_STATE_COOKIE_NAME, path="/api/auth")
    return response


async def oauth_callback(request: Request) -> Response:
    """GET /api/auth/{provider}/callback - exchange the code, resolve the user, start a session."""
    config = _provider_or_404(request)
    settings: VaultSettings = request.app.state.vault_settings

    expected_state = unsign_value(request.cookies.get(OAUTH_STATE_COOKIE_NAME), settings.session_secret)
    state = request.query_params.get("state")
    code = request.query_params.get("code")
    if expected_state is None or state is None or not secrets.compare_digest(expected_state, state):
        logger.warning("oauth callback state mismatch", provider=config.name)
        return _oauth_failure("oauth")
    if not code:
        logger.info("oauth callback without code", provider=config.name, error=request.query_params.get("error"))
        return _oauth_failure("oauth")

    client = client_info(request)
    try:
        profile, tokens = await request.app.state.oauth_client.complete(config, code)
        identity = await request.app.state.resolver.resolve(profile, tokens, client)
    except AccountLinkRequired:
        return _oauth_failure("link_required")
    except OAuthError as e:
        logger.warning("oauth login failed", provider=config.name, reason=str(e))
        return _oauth_failure("oauth")

    auth_service = request.app.state.auth_service
    session = auth_service.establish_session(identity)
    response = RedirectResponse("/", status_code=302)
    set_session_cookie(response, auth_service.session_cookie_value(session), settings)
    response.delete_cookie(key=OAUTH_STATE_COOKIE_NAME, path="/api/auth")
    return response
