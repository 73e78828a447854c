"""Password reset: one-time token issuance, redemption, and expiry sweep.

Only ``sha256(secret)`` is stored. The plaintext secret exists in memory
long enough to reach the ResetMailer and is never logged or persisted.
Redemption is single-use: the repository flips ``used`` with a conditional
write in the same transaction as the password change.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, NoReturn, Protocol
from urllib.parse import urlencode
from uuid import uuid4

import structlog

from vault.auth.models import AuditAction, Identity, PasswordResetToken
from vault.auth.service import validate_password
from vault.crypto import sha256_hex
from vault.errors import InvalidResetToken
from vault.validators import normalize_email

if TYPE_CHECKING:
    from collections.abc import Callable

    from vault.auth.audit import AuditTrail
    from vault.auth.models import ClientInfo
    from vault.auth.password import PasswordHasher
    from vault.dal.token_repository import ResetTokenRepository
    from vault.dal.user_repository import UserRepository

logger = structlog.get_logger()

RESET_TOKEN_TTL = timedelta(hours=1)
RESET_SECRET_BYTES = 32


@dataclass(frozen=True)
class IssuedReset:
    """A freshly issued reset, handed to the mailer. ``secret`` is excluded from repr."""

    user_id: str
    email: str
    expires_at: datetime
    secret: str = field(repr=False)
    reset_url: str = field(repr=False)


class ResetMailer(Protocol):
    async def send_reset(self, issued: IssuedReset) -> None: ...


class LoggingResetMailer:
    """Default mailer: records that a reset was issued without its secret."""

    async def send_reset(self, issued: IssuedReset) -> None:
        logger.info("password reset issued", user_id=issued.user_id, expires_at=issued.expires_at)


class PasswordResetFlow:
    def __init__(
        self,
        user_repo: UserRepository,
        token_repo: ResetTokenRepository,
        audit: AuditTrail,
        *,
        password_hasher: PasswordHasher,
        public_base_url: str,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._user_repo = user_repo
        self._token_repo = token_repo
        self._audit = audit
        self._hasher = password_hasher
        self._public_base_url = public_base_url.rstrip("/")
        self._clock = clock or (lambda: datetime.now(UTC))

    async def request_reset(self, email: str, client: ClientInfo | None = None) -> IssuedReset | None:
        """Issue a reset token for a known email; return None for unknown ones.

        Callers must respond identically in both cases.
        """
        email = normalize_email(email)
        user = await self._user_repo.get_by_email(email) if email else None
        if user is None or user.email is None:
            await self._audit.record(
                AuditAction.PASSWORD_RESET_REQUESTED,
                success=False,
                email=email or None,
                client=client,
                failure_reason="unknown_email",
            )
            return None

        now = self._clock()
        secret = secrets.token_urlsafe(RESET_SECRET_BYTES)
        token = PasswordResetToken(
            token_id=str(uuid4()),
            user_id=user.user_id,
            token_hash=sha256_hex(secret),
            expires_at=now + RESET_TOKEN_TTL,
            created_at=now,
        )
        await self._token_repo.create_token(token)
        await self._audit.record(
            AuditAction.PASSWORD_RESET_REQUESTED,
            success=True,
            user_id=user.user_id,
            email=email,
            client=client,
        )
        return IssuedReset(
            user_id=user.user_id,
            email=user.email,
            expires_at=token.expires_at,
            secret=secret,
            reset_url=f"{self._public_base_url}/reset-password?{urlencode({'token': secret})}",
        )

    async def redeem(self, secret: str, new_password: str, client: ClientInfo | None = None) -> Identity:
        """Consume a reset secret and set a new password.

        Raises InvalidResetToken for unknown, used, or expired secrets; the
        audit log records which.
        """
        validate_password(new_password)
        token_hash = sha256_hex(secret)
        now = self._clock()

        record = await self._token_repo.get_by_hash(token_hash)
        if record is None:
            await self._fail(None, "token_not_found", client)
        elif record.used:
            await self._fail(record.user_id, "token_used", client)
        elif now >= record.expires_at:
            await self._fail(record.user_id, "token_expired", client)

        password_hash = await self._hasher.hash(new_password)
        if not await self._token_repo.redeem(token_hash, password_hash, now):
            # Consumed by a concurrent redemption between lookup and write.
            await self._fail(record.user_id, "token_used", client)

        user = await self._user_repo.get_by_id(record.user_id)
        if user is None:  # pragma: no cover
            raise InvalidResetToken
        await self._audit.record(
            AuditAction.PASSWORD_RESET,
            success=True,
            user_id=user.user_id,
            email=user.email,
            client=client,
        )
        logger.info("password reset completed", user_id=user.user_id)
        return Identity.from_user(user)

    async def purge_expired(self) -> int:
        return await self._token_repo.purge_expired(self._clock())

    async def _fail(self, user_id: str | None, reason: str, client: ClientInfo | None) -> NoReturn:
        await self._audit.record(
            AuditAction.PASSWORD_RESET,
            success=False,
            user_id=user_id,
            client=client,
            failure_reason=reason,
        )
        raise InvalidResetToken
