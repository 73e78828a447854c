"""Account, credential, and session models for authentication."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

LOCAL_PROVIDER = "local"


class User(BaseModel, frozen=True):
    """Local user account. Never serialized to clients directly; see Identity."""

    user_id: str
    email: str | None = None
    phone: str | None = None
    password_hash: str | None = None  # argon2 encoded hash; None for OAuth-only accounts
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    email_verified: bool = False
    failed_login_attempts: int = Field(default=0, ge=0)
    account_locked_until: datetime | None = None
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def _validate_credential(self) -> Self:
        if self.password_hash is not None and not self.password_hash:
            raise ValueError("password_hash must be None or a non-empty hash")
        return self


class Identity(BaseModel):
    """Minimal projection of a User carried in sessions and returned to clients."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    user_id: str = Field(serialization_alias="id")
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None

    @classmethod
    def from_user(cls, user: User) -> Self:
        return cls(
            user_id=user.user_id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            profile_image_url=user.profile_image_url,
        )

    @property
    def display_name(self) -> str:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or self.email or self.user_id


class ExternalIdentity(BaseModel, frozen=True):
    """Link between a third-party provider account and a local user."""

    identity_id: str
    user_id: str
    provider: str
    provider_account_id: str
    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: datetime | None = None
    scope: str | None = None
    profile_payload: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class PasswordResetToken(BaseModel, frozen=True):
    """Stored reset token. Only the SHA-256 of the issued secret is kept."""

    token_id: str
    user_id: str
    token_hash: str
    expires_at: datetime
    used: bool = False
    created_at: datetime


class AuditAction(StrEnum):
    LOGIN = "login"
    LOGIN_FAILED = "login_failed"
    SIGNUP = "signup"
    LOGOUT = "logout"
    PASSWORD_RESET_REQUESTED = "password_reset_requested"
    PASSWORD_RESET = "password_reset"


class AuditLogEntry(BaseModel, frozen=True):
    """Append-only record of an auth event."""

    entry_id: str
    user_id: str | None = None  # None for attempts against unknown emails
    email: str | None = None
    action: AuditAction
    provider: str = LOCAL_PROVIDER
    ip_address: str | None = None
    user_agent: str | None = None
    success: bool
    failure_reason: str | None = None
    created_at: datetime


@dataclass(frozen=True)
class ClientInfo:
    """Request metadata recorded alongside auth events."""

    ip_address: str | None = None
    user_agent: str | None = None


@dataclass
class AuthSession:
    """Server-side session for an authenticated user."""

    session_id: str  # random, signed into the cookie
    identity: Identity
    created_at: float  # time.time()
    expires_at: float  # time.time() + TTL
