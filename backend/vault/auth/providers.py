"""OAuth2 identity providers: static endpoints, configured registry, and HTTP client.

Each provider is described once by a ProviderSpec (endpoints, scopes, and a
profile parser for its userinfo shape). ProviderRegistry.from_settings()
builds the configured subset at startup; only providers with both a client
id and a client secret are enabled.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from http import HTTPStatus
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import httpx
import structlog
from pydantic import BaseModel, Field

from vault.errors import OAuthError

if TYPE_CHECKING:
    from collections.abc import Callable

    from vault.auth.settings import VaultSettings

logger = structlog.get_logger()

HTTP_TIMEOUT_SECONDS = 10.0
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600


class ProviderProfile(BaseModel, frozen=True):
    """Normalized profile claims returned by a provider's userinfo endpoint."""

    provider: str
    provider_account_id: str = Field(min_length=1)
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)


class OAuthTokens(BaseModel, frozen=True):
    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None
    scope: str | None = None


def _google_profile(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "provider_account_id": str(data.get("sub") or ""),
        "email": data.get("email"),
        "first_name": data.get("given_name"),
        "last_name": data.get("family_name"),
        "profile_image_url": data.get("picture"),
    }


def _microsoft_profile(data: dict[str, Any]) -> dict[str, Any]:
    return {
        "provider_account_id": str(data.get("id") or ""),
        "email": data.get("mail") or data.get("userPrincipalName"),
        "first_name": data.get("givenName"),
        "last_name": data.get("surname"),
    }


def _facebook_profile(data: dict[str, Any]) -> dict[str, Any]:
    picture = (data.get("picture") or {}).get("data") or {}
    return {
        "provider_account_id": str(data.get("id") or ""),
        "email": data.get("email"),
        "first_name": data.get("first_name"),
        "last_name": data.get("last_name"),
        "profile_image_url": picture.get("url"),
    }


@dataclass(frozen=True)
class ProviderSpec:
    name: str
    authorize_url: str
    token_url: str
    userinfo_url: str
    scope: str
    parse_profile: Callable[[dict[str, Any]], dict[str, Any]]


PROVIDER_SPECS: dict[str, ProviderSpec] = {
    spec.name: spec
    for spec in (
        ProviderSpec(
            name="google",
            authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
            token_url="https://oauth2.googleapis.com/token",  # noqa: S106
            userinfo_url="https://openidconnect.googleapis.com/v1/userinfo",
            scope="openid profile email",
            parse_profile=_google_profile,
        ),
        ProviderSpec(
            name="microsoft",
            authorize_url="https://login.microsoftonline.com/common/oauth2/v2.0/authorize",
            token_url="https://login.microsoftonline.com/common/oauth2/v2.0/token",  # noqa: S106
            userinfo_url="https://graph.microsoft.com/v1.0/me",
            scope="user.read",
            parse_profile=_microsoft_profile,
        ),
        ProviderSpec(
            name="linkedin",
            authorize_url="https://www.linkedin.com/oauth/v2/authorization",
            token_url="https://www.linkedin.com/oauth/v2/accessToken",  # noqa: S106
            userinfo_url="https://api.linkedin.com/v2/userinfo",
            scope="openid profile email",
            parse_profile=_google_profile,  # LinkedIn userinfo uses the same OIDC claims
        ),
        ProviderSpec(
            name="facebook",
            authorize_url="https://www.facebook.com/v18.0/dialog/oauth",
            token_url="https://graph.facebook.com/v18.0/oauth/access_token",  # noqa: S106
            userinfo_url="https://graph.facebook.com/me?fields=id,email,first_name,last_name,picture",
            scope="email public_profile",
            parse_profile=_facebook_profile,
        ),
    )
}


@dataclass(frozen=True)
class ProviderConfig:
    """A provider enabled with client credentials."""

    spec: ProviderSpec
    client_id: str
    client_secret: str
    redirect_uri: str

    @property
    def name(self) -> str:
        return self.spec.name

    def authorization_url(self, state: str) -> str:
        query = urlencode(
            {
                "client_id": self.client_id,
                "redirect_uri": self.redirect_uri,
                "response_type": "code",
                "scope": self.spec.scope,
                "state": state,
            },
        )
        return f"{self.spec.authorize_url}?{query}"


class ProviderRegistry:
    """Immutable name -> ProviderConfig mapping built once at startup."""

    def __init__(self, providers: dict[str, ProviderConfig]) -> None:
        self._providers = dict(providers)

    @classmethod
    def from_settings(cls, settings: VaultSettings) -> ProviderRegistry:
        base_url = settings.public_base_url.rstrip("/")
        providers: dict[str, ProviderConfig] = {}
        for name, spec in PROVIDER_SPECS.items():
            client_id, client_secret = settings.provider_credentials(name)
            if not client_id or not client_secret:
                continue
            providers[name] = ProviderConfig(
                spec=spec,
                client_id=client_id,
                client_secret=client_secret,
                redirect_uri=f"{base_url}/api/auth/{name}/callback",
            )
        logger.info("oauth providers configured", providers=sorted(providers))
        return cls(providers)

    def get(self, name: str) -> ProviderConfig | None:
        return self._providers.get(name)

    def names(self) -> list[str]:
        return sorted(self._providers)


def _json_object(response: httpx.Response, provider: str, what: str) -> dict[str, Any]:
    """Decode a provider response body that must be a JSON object."""
    try:
        payload = response.json()
    except ValueError as e:
        raise OAuthError(f"{provider} returned a malformed {what} response") from e
    if not isinstance(payload, dict):
        raise OAuthError(f"{provider} returned a malformed {what} response")
    return payload


class OAuthClient:
    """Authorization-code exchange and profile fetch over httpx.

    ``transport`` lets tests substitute an httpx.MockTransport.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._transport = transport
        self._clock = clock or (lambda: datetime.now(UTC))

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS, transport=self._transport)

    async def complete(self, config: ProviderConfig, code: str) -> tuple[ProviderProfile, OAuthTokens]:
        """Exchange an authorization code and fetch the caller's profile."""
        async with self._client() as client:
            tokens = await self._exchange_code(client, config, code)
            profile = await self._fetch_profile(client, config, tokens)
        return profile, tokens

    async def _exchange_code(self, client: httpx.AsyncClient, config: ProviderConfig, code: str) -> OAuthTokens:
        try:
            response = await client.post(
                config.spec.token_url,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": config.redirect_uri,
                    "client_id": config.client_id,
                    "client_secret": config.client_secret,
                },
                headers={"Accept": "application/json"},
            )
        except httpx.RequestError as e:
            raise OAuthError(f"Failed to reach {config.name} token endpoint") from e
        if response.status_code != HTTPStatus.OK:
            logger.warning("oauth token exchange rejected", provider=config.name, status=response.status_code)
            raise OAuthError(f"{config.name} token exchange failed")

        payload = _json_object(response, config.name, "token")
        access_token = payload.get("access_token")
        if not access_token:
            raise OAuthError(f"{config.name} returned no access token")
        expires_in = payload.get("expires_in") or DEFAULT_TOKEN_LIFETIME_SECONDS
        try:
            return OAuthTokens(
                access_token=access_token,
                refresh_token=payload.get("refresh_token"),
                expires_at=self._clock() + timedelta(seconds=int(expires_in)),
                scope=payload.get("scope") or config.spec.scope,
            )
        except (TypeError, ValueError) as e:
            raise OAuthError(f"{config.name} returned a malformed token response") from e

    async def _fetch_profile(
        self,
        client: httpx.AsyncClient,
        config: ProviderConfig,
        tokens: OAuthTokens,
    ) -> ProviderProfile:
        try:
            response = await client.get(
                config.spec.userinfo_url,
                headers={"Authorization": f"Bearer {tokens.access_token}", "Accept": "application/json"},
            )
        except httpx.RequestError as e:
            raise OAuthError(f"Failed to reach {config.name} userinfo endpoint") from e
        if response.status_code != HTTPStatus.OK:
            logger.warning("oauth profile fetch rejected", provider=config.name, status=response.status_code)
            raise OAuthError(f"{config.name} profile fetch failed")

        raw = _json_object(response, config.name, "profile")
        try:
            claims = config.spec.parse_profile(raw)
            if not claims["provider_account_id"]:
                raise OAuthError(f"{config.name} profile has no account id")
            return ProviderProfile(provider=config.name, raw=raw, **claims)
        except (AttributeError, TypeError, ValueError) as e:
            raise OAuthError(f"{config.name} returned a malformed profile") from e
