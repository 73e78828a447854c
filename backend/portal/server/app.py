from __future__ import annotations

import contextlib
from http import HTTPStatus
from typing import TYPE_CHECKING, cast

import structlog
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from portal.auth.backend import SessionCookieBackend
from portal.auth.middleware import SlidingSessionCookieMiddleware
from portal.auth.policy import protected_api, public_route, validate_route_auth_policy
from portal.server.middleware import SecurityHeadersMiddleware, SlashNormalizationMiddleware
from portal.server.settings import PortalServerSettings
from portal.views import (
    archive_link,
    create_group,
    create_link,
    create_share,
    current_user,
    delete_group,
    delete_link,
    forgot_password,
    get_group,
    get_link,
    invite_members,
    list_groups,
    list_link_clicks,
    list_link_shares,
    list_links,
    list_members,
    list_notifications,
    list_providers,
    login,
    logout,
    mark_notification_read,
    oauth_callback,
    oauth_start,
    record_click,
    reset_password,
    signup,
    update_group,
    update_link,
)
from vault.auth import (
    AuditTrail,
    AuthorizationGuard,
    AuthService,
    LoggingResetMailer,
    OAuthClient,
    PasswordResetFlow,
    ProviderLinkResolver,
    ProviderRegistry,
    SqliteSessionStore,
    VaultSettings,
    get_hasher,
)
from vault.build_info import APP_VERSION, GIT_COMMIT
from vault.crypto import FieldCipher
from vault.db import (
    Database,
    SqliteAuditLogRepository,
    SqliteClickRepository,
    SqliteGroupRepository,
    SqliteIdentityRepository,
    SqliteLinkRepository,
    SqliteNotificationRepository,
    SqliteResetTokenRepository,
    SqliteShareRepository,
    SqliteUserRepository,
)
from vault.errors import ValidationFailure, VaultError
from vault.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.requests import Request

    from vault.auth.reset import ResetMailer


async def _vault_error_handler(request: Request, exc: Exception) -> Response:
    """Render expected failures as ``{"error": ...}`` with the error's status code."""
    error = cast("VaultError", exc)
    body: dict[str, object] = {"error": str(error)}
    if isinstance(error, ValidationFailure) and error.fields:
        body["fields"] = error.fields
    if error.status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error("vault error", path=request.url.path, error=str(error))
        body = {"error": "Internal server error"}
    return JSONResponse(body, status_code=error.status_code)


async def _http_error_handler(_request: Request, exc: Exception) -> Response:
    http_exc = cast("HTTPException", exc)
    if http_exc.status_code in {HTTPStatus.NO_CONTENT, HTTPStatus.NOT_MODIFIED}:
        return Response(status_code=http_exc.status_code, headers=http_exc.headers)
    return JSONResponse({"error": http_exc.detail}, status_code=http_exc.status_code, headers=http_exc.headers)


async def _unexpected_error_handler(request: Request, _exc: Exception) -> Response:
    logger.exception("unhandled error", path=request.url.path)
    return JSONResponse({"error": "Internal server error"}, status_code=HTTPStatus.INTERNAL_SERVER_ERROR)


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "version": APP_VERSION, "commit": GIT_COMMIT})


def build_routes() -> list[Route]:
    return [
        # Public auth routes
        Route("/health", public_route(health), methods=["GET"], name="health"),
        Route("/api/auth/signup", public_route(signup), methods=["POST"], name="signup"),
        Route("/api/auth/login", public_route(login), methods=["POST"], name="login"),
        Route("/api/auth/logout", public_route(logout), methods=["POST"], name="logout"),
        Route("/api/auth/user", public_route(current_user), methods=["GET"], name="current_user"),
        Route("/api/auth/providers", public_route(list_providers), methods=["GET"], name="list_providers"),
        Route("/api/auth/forgot-password", public_route(forgot_password), methods=["POST"], name="forgot_password"),
        Route("/api/auth/reset-password", public_route(reset_password), methods=["POST"], name="reset_password"),
        Route("/api/auth/{provider}", public_route(oauth_start), methods=["GET"], name="oauth_start"),
        Route(
            "/api/auth/{provider}/callback",
            public_route(oauth_callback),
            methods=["GET"],
            name="oauth_callback",
        ),
        # Links
        Route("/api/links", protected_api(list_links), methods=["GET"], name="list_links"),
        Route("/api/links", protected_api(create_link), methods=["POST"], name="create_link"),
        Route("/api/links/{link_id}", protected_api(get_link), methods=["GET"], name="get_link"),
        Route("/api/links/{link_id}", protected_api(update_link), methods=["PATCH"], name="update_link"),
        Route("/api/links/{link_id}", protected_api(delete_link), methods=["DELETE"], name="delete_link"),
        Route("/api/links/{link_id}/archive", protected_api(archive_link), methods=["PATCH"], name="archive_link"),
        # Groups
        Route("/api/groups", protected_api(list_groups), methods=["GET"], name="list_groups"),
        Route("/api/groups", protected_api(create_group), methods=["POST"], name="create_group"),
        Route("/api/groups/{group_id}", protected_api(get_group), methods=["GET"], name="get_group"),
        Route("/api/groups/{group_id}", protected_api(update_group), methods=["PATCH"], name="update_group"),
        Route("/api/groups/{group_id}", protected_api(delete_group), methods=["DELETE"], name="delete_group"),
        Route(
            "/api/groups/{group_id}/invite",
            protected_api(invite_members),
            methods=["POST"],
            name="invite_members",
        ),
        Route("/api/groups/{group_id}/members", protected_api(list_members), methods=["GET"], name="list_members"),
        # Shares and clicks
        Route("/api/shares", protected_api(create_share), methods=["POST"], name="create_share"),
        Route(
            "/api/shares/link/{link_id}",
            protected_api(list_link_shares),
            methods=["GET"],
            name="list_link_shares",
        ),
        Route("/api/clicks", protected_api(record_click), methods=["POST"], name="record_click"),
        Route(
            "/api/clicks/link/{link_id}",
            protected_api(list_link_clicks),
            methods=["GET"],
            name="list_link_clicks",
        ),
        # Notifications
        Route("/api/notifications", protected_api(list_notifications), methods=["GET"], name="list_notifications"),
        Route(
            "/api/notifications/{notification_id}/read",
            protected_api(mark_notification_read),
            methods=["PATCH"],
            name="mark_notification_read",
        ),
    ]


def create_app(
    settings: PortalServerSettings | None = None,
    vault_settings: VaultSettings | None = None,  # required in production (via get_app)
    *,
    oauth_client: OAuthClient | None = None,
    reset_mailer: ResetMailer | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = PortalServerSettings()
    if vault_settings is None:  # pragma: no cover
        vault_settings = VaultSettings()  # type: ignore[call-arg]

    routes = build_routes()
    validate_route_auth_policy(routes)

    # Initialize database and auth components
    db = Database(vault_settings.database_path)
    db.connect()
    users = SqliteUserRepository(db)
    groups = SqliteGroupRepository(db)
    links = SqliteLinkRepository(db, FieldCipher(vault_settings.encryption_key))
    shares = SqliteShareRepository(db)
    audit = AuditTrail(SqliteAuditLogRepository(db))
    hasher = get_hasher(vault_settings.password_hasher)
    session_store = SqliteSessionStore(
        db,
        ttl_seconds=vault_settings.session_ttl_seconds,
        sliding=vault_settings.session_sliding,
    )
    auth_service = AuthService(
        users,
        session_store,
        audit,
        password_hasher=hasher,
        session_secret=vault_settings.session_secret,
    )
    reset_flow = PasswordResetFlow(
        users,
        SqliteResetTokenRepository(db),
        audit,
        password_hasher=hasher,
        public_base_url=vault_settings.public_base_url,
    )

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:  # pragma: no cover
        session_store.start_cleanup(reset_flow.purge_expired)
        yield
        await session_store.stop_cleanup()
        db.close()

    app = Starlette(
        routes=routes,
        lifespan=lifespan,
        exception_handlers={
            VaultError: _vault_error_handler,
            HTTPException: _http_error_handler,
            Exception: _unexpected_error_handler,
        },
    )
    app.add_middleware(SlashNormalizationMiddleware)  # type: ignore[arg-type]
    app.add_middleware(AuthenticationMiddleware, backend=SessionCookieBackend(auth_service))  # type: ignore[arg-type]
    app.add_middleware(SlidingSessionCookieMiddleware, settings=vault_settings)  # type: ignore[arg-type]
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type"],
    )
    app.add_middleware(SecurityHeadersMiddleware)  # type: ignore[arg-type]

    app.state.db = db
    app.state.settings = settings
    app.state.vault_settings = vault_settings
    app.state.auth_service = auth_service
    app.state.reset_flow = reset_flow
    app.state.reset_mailer = reset_mailer or LoggingResetMailer()
    app.state.providers = ProviderRegistry.from_settings(vault_settings)
    app.state.oauth_client = oauth_client or OAuthClient()
    app.state.resolver = ProviderLinkResolver(
        users,
        SqliteIdentityRepository(db),
        audit,
        link_by_email=vault_settings.oauth_link_by_email,
    )
    app.state.guard = AuthorizationGuard(links, groups, shares)
    app.state.users = users
    app.state.links = links
    app.state.groups = groups
    app.state.shares = shares
    app.state.clicks = SqliteClickRepository(db)
    app.state.notifications = SqliteNotificationRepository(db)

    logger.info("portal server ready")
    return app


def get_app() -> Starlette:  # pragma: no cover  # deadcode: ignore
    """Factory function for uvicorn --factory portal.server.app:get_app."""
    s = PortalServerSettings()
    vault = VaultSettings()  # ty: ignore[missing-argument]
    setup_logging(log_dir=s.log_dir)
    return create_app(settings=s, vault_settings=vault)
