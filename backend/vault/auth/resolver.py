"""Map an OAuth callback (profile + tokens) to a local user.

Resolution order:

1. A known (provider, provider_account_id) link: refresh its tokens and
   profile payload and use its user.
2. An existing user with exactly the profile email: attach a new link to
   that user. Disabled by ``oauth_link_by_email=False``, in which case the
   login is refused with AccountLinkRequired.
3. Otherwise create the user and its first link in one transaction.

Two concurrent callbacks for the same provider account race on the unique
index; the loser retries from step 1 and lands on the winner's user.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from vault.auth.models import AuditAction, ExternalIdentity, Identity, User
from vault.errors import AccountLinkRequired, OAuthError
from vault.validators import normalize_email

if TYPE_CHECKING:
    from collections.abc import Callable

    from vault.auth.audit import AuditTrail
    from vault.auth.models import ClientInfo
    from vault.auth.providers import OAuthTokens, ProviderProfile
    from vault.dal.identity_repository import IdentityRepository
    from vault.dal.user_repository import UserRepository

logger = structlog.get_logger()

_MAX_ATTEMPTS = 2


class ProviderLinkResolver:
    def __init__(
        self,
        user_repo: UserRepository,
        identity_repo: IdentityRepository,
        audit: AuditTrail,
        *,
        link_by_email: bool = True,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._user_repo = user_repo
        self._identity_repo = identity_repo
        self._audit = audit
        self._link_by_email = link_by_email
        self._clock = clock or (lambda: datetime.now(UTC))

    async def resolve(
        self,
        profile: ProviderProfile,
        tokens: OAuthTokens,
        client: ClientInfo | None = None,
    ) -> Identity:
        """Return the local identity for a provider login, creating or linking as needed."""
        user_id = await self._resolve_user_id(profile, tokens, client)
        now = self._clock()
        user = await self._user_repo.update_user(user_id, last_login_at=now, failed_login_attempts=0)
        if user is None:
            raise OAuthError("Linked account no longer exists")

        await self._audit.record(
            AuditAction.LOGIN,
            success=True,
            user_id=user.user_id,
            email=user.email,
            provider=profile.provider,
            client=client,
        )
        return Identity.from_user(user)

    async def _resolve_user_id(
        self,
        profile: ProviderProfile,
        tokens: OAuthTokens,
        client: ClientInfo | None,
    ) -> str:
        for attempt in range(1, _MAX_ATTEMPTS + 1):
            existing = await self._identity_repo.get_identity(profile.provider, profile.provider_account_id)
            if existing is not None:
                await self._identity_repo.update_identity(
                    existing.identity_id,
                    access_token=tokens.access_token,
                    refresh_token=tokens.refresh_token or existing.refresh_token,
                    expires_at=tokens.expires_at,
                    scope=tokens.scope,
                    profile_payload=profile.raw,
                )
                return existing.user_id
            try:
                return await self._link_or_create(profile, tokens, client)
            except ValueError as e:
                if attempt == _MAX_ATTEMPTS:
                    raise OAuthError("Could not link provider account") from e
                logger.info("oauth link lost a race, retrying", provider=profile.provider)
        raise AssertionError("unreachable")  # pragma: no cover

    async def _link_or_create(
        self,
        profile: ProviderProfile,
        tokens: OAuthTokens,
        client: ClientInfo | None,
    ) -> str:
        now = self._clock()
        email = normalize_email(profile.email) if profile.email else None

        if email:
            user = await self._user_repo.get_by_email(email)
            if user is not None:
                if not self._link_by_email:
                    await self._audit.record(
                        AuditAction.LOGIN_FAILED,
                        success=False,
                        user_id=user.user_id,
                        email=email,
                        provider=profile.provider,
                        client=client,
                        failure_reason="account_link_required",
                    )
                    raise AccountLinkRequired("Sign in with your password to link this provider")
                await self._identity_repo.create_identity(self._new_identity(user.user_id, profile, tokens, now))
                logger.info("linked provider to existing account", provider=profile.provider, user_id=user.user_id)
                return user.user_id

        user = User(
            user_id=str(uuid4()),
            email=email or None,
            first_name=profile.first_name,
            last_name=profile.last_name,
            profile_image_url=profile.profile_image_url,
            email_verified=True,
            created_at=now,
            updated_at=now,
        )
        await self._user_repo.create_user(user, self._new_identity(user.user_id, profile, tokens, now))
        logger.info("created account from provider login", provider=profile.provider, user_id=user.user_id)
        return user.user_id

    @staticmethod
    def _new_identity(
        user_id: str,
        profile: ProviderProfile,
        tokens: OAuthTokens,
        now: datetime,
    ) -> ExternalIdentity:
        return ExternalIdentity(
            identity_id=str(uuid4()),
            user_id=user_id,
            provider=profile.provider,
            provider_account_id=profile.provider_account_id,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_at=tokens.expires_at,
            scope=tokens.scope,
            profile_payload=profile.raw,
            created_at=now,
            updated_at=now,
        )
