"""Auth service coordinating signup, credential login, and session management."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from vault.auth.audit import AuditTrail
from vault.auth.lockout import LockoutPolicy, LockState
from vault.auth.models import AuditAction, ClientInfo, Identity, User
from vault.auth.signing import sign_value, unsign_value
from vault.errors import ConflictError, ValidationFailure
from vault.validators import normalize_email

if TYPE_CHECKING:
    from collections.abc import Callable

    from vault.auth.models import AuthSession
    from vault.auth.password import PasswordHasher
    from vault.auth.session_store import SqliteSessionStore
    from vault.dal.user_repository import UserRepository

logger = structlog.get_logger()

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
ACCOUNT_LOCKED_MESSAGE = "Account is temporarily locked. Please try again later."

# Verified against when no stored hash exists, so unknown accounts cost one hash.
_DUMMY_PASSWORD = "linkvault-dummy-password"  # noqa: S105


class RejectReason(StrEnum):
    UNKNOWN_EMAIL = "unknown_email"
    NO_PASSWORD = "no_password"
    INVALID_PASSWORD = "invalid_password"
    ACCOUNT_LOCKED = "account_locked"


@dataclass(frozen=True)
class LoginAccepted:
    identity: Identity
    session: AuthSession


@dataclass(frozen=True)
class LoginRejected:
    """Failed login. ``reason`` is for the audit log; clients only see ``message``."""

    reason: RejectReason

    @property
    def message(self) -> str:
        if self.reason == RejectReason.ACCOUNT_LOCKED:
            return ACCOUNT_LOCKED_MESSAGE
        return INVALID_CREDENTIALS_MESSAGE


LoginResult = LoginAccepted | LoginRejected


class AuthService:
    """Coordinate local signup, login with lockout, and session cookies."""

    def __init__(
        self,
        user_repo: UserRepository,
        session_store: SqliteSessionStore,
        audit: AuditTrail,
        *,
        password_hasher: PasswordHasher,
        session_secret: str,
        lockout: LockoutPolicy | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._user_repo = user_repo
        self._session_store = session_store
        self._audit = audit
        self._hasher = password_hasher
        self._session_secret = session_secret
        self._lockout = lockout or LockoutPolicy()
        self._clock = clock or (lambda: datetime.now(UTC))
        self._dummy_hash: str | None = None

    async def signup(
        self,
        *,
        password: str,
        email: str | None = None,
        phone: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        client: ClientInfo | None = None,
    ) -> AuthSession:
        """Create a local account and establish its first session."""
        email = _normalize(email, normalize_email)
        phone = _normalize(phone)
        if email is None and phone is None:
            raise ValidationFailure("Email or phone is required", {"email": "Email or phone is required"})
        validate_password(password)

        if email is not None and await self._user_repo.get_by_email(email) is not None:
            raise ConflictError("An account with this email already exists")
        if phone is not None and await self._user_repo.get_by_phone(phone) is not None:
            raise ConflictError("An account with this phone number already exists")

        now = self._clock()
        user = User(
            user_id=str(uuid4()),
            email=email,
            phone=phone,
            password_hash=await self._hasher.hash(password),
            first_name=first_name,
            last_name=last_name,
            last_login_at=now,
            created_at=now,
            updated_at=now,
        )
        try:
            await self._user_repo.create_user(user)
        except ValueError as e:
            # Lost a race with a concurrent signup for the same email/phone.
            raise ConflictError(str(e)) from e

        await self._audit.record(AuditAction.SIGNUP, success=True, user_id=user.user_id, email=email, client=client)
        logger.info("user signed up", user_id=user.user_id)
        return self._session_store.establish(Identity.from_user(user))

    async def login(self, email: str, password: str, client: ClientInfo | None = None) -> LoginResult:
        """Verify credentials under the lockout policy.

        Every rejection except a locked account carries the same generic
        message; the precise reason is only written to the audit log.
        """
        email = normalize_email(email)
        user = await self._user_repo.get_by_email(email)
        if user is None:
            await self._burn_verification(password)
            return await self._reject(RejectReason.UNKNOWN_EMAIL, None, email, client)

        now = self._clock()
        if self._lockout.state(user, now) == LockState.LOCKED:
            return await self._reject(RejectReason.ACCOUNT_LOCKED, user.user_id, email, client)

        if user.password_hash is None:
            await self._burn_verification(password)
            return await self._reject(RejectReason.NO_PASSWORD, user.user_id, email, client)

        if not await self._hasher.verify(password, user.password_hash):
            updates = self._lockout.after_failure(user, now)
            await self._user_repo.update_user(user.user_id, **updates)
            if "account_locked_until" in updates:
                logger.warning("account locked after failed logins", user_id=user.user_id)
            return await self._reject(RejectReason.INVALID_PASSWORD, user.user_id, email, client)

        updated = await self._user_repo.update_user(user.user_id, **self._lockout.after_success(now))
        identity = Identity.from_user(updated or user)
        await self._audit.record(AuditAction.LOGIN, success=True, user_id=user.user_id, email=email, client=client)
        return LoginAccepted(identity=identity, session=self._session_store.establish(identity))

    def session_cookie_value(self, session: AuthSession) -> str:
        return sign_value(session.session_id, self._session_secret)

    def validate_session(self, cookie_value: str | None) -> AuthSession | None:
        """Return the session for a signed cookie value, or None. Never raises."""
        session_id = unsign_value(cookie_value, self._session_secret)
        if session_id is None:
            return None
        return self._session_store.resolve(session_id)

    def establish_session(self, identity: Identity) -> AuthSession:
        return self._session_store.establish(identity)

    async def logout(self, cookie_value: str | None, client: ClientInfo | None = None) -> None:
        """Destroy the session behind a signed cookie value, if any."""
        session = self.validate_session(cookie_value)
        if session is None:
            return
        self._session_store.destroy(session.session_id)
        await self._audit.record(
            AuditAction.LOGOUT,
            success=True,
            user_id=session.identity.user_id,
            email=session.identity.email,
            client=client,
        )

    # -- private helpers --

    async def _burn_verification(self, password: str) -> None:
        if self._dummy_hash is None:
            self._dummy_hash = await self._hasher.hash(_DUMMY_PASSWORD)
        await self._hasher.verify(password, self._dummy_hash)

    async def _reject(
        self,
        reason: RejectReason,
        user_id: str | None,
        email: str,
        client: ClientInfo | None,
    ) -> LoginRejected:
        await self._audit.record(
            AuditAction.LOGIN_FAILED,
            success=False,
            user_id=user_id,
            email=email,
            client=client,
            failure_reason=reason.value,
        )
        return LoginRejected(reason=reason)


def _normalize(value: str | None, canonical: Callable[[str], str] = str.strip) -> str | None:
    if value is None:
        return None
    return canonical(value) or None


def validate_password(password: str) -> None:
    """Validate password: 8-128 chars."""
    if len(password) < PASSWORD_MIN_LENGTH or len(password) > PASSWORD_MAX_LENGTH:
        message = f"Password must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters"
        raise ValidationFailure(message, {"password": message})
