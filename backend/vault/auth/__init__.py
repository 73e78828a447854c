"""Authentication and authorization core: credentials, provider links, sessions, resets, and guards."""

from vault.auth.audit import AuditTrail
from vault.auth.guard import AuthorizationGuard
from vault.auth.lockout import LockoutPolicy, LockState
from vault.auth.models import AuthSession, ClientInfo, ExternalIdentity, Identity, User
from vault.auth.password import PasswordHasher, get_hasher
from vault.auth.providers import OAuthClient, ProviderRegistry
from vault.auth.reset import LoggingResetMailer, PasswordResetFlow, ResetMailer
from vault.auth.resolver import ProviderLinkResolver
from vault.auth.service import AuthService, LoginAccepted, LoginRejected
from vault.auth.session_store import SqliteSessionStore
from vault.auth.settings import VaultSettings

__all__ = [
    "AuditTrail",
    "AuthService",
    "AuthSession",
    "AuthorizationGuard",
    "ClientInfo",
    "ExternalIdentity",
    "Identity",
    "LockState",
    "LockoutPolicy",
    "LoggingResetMailer",
    "LoginAccepted",
    "LoginRejected",
    "OAuthClient",
    "PasswordHasher",
    "PasswordResetFlow",
    "ProviderLinkResolver",
    "ProviderRegistry",
    "ResetMailer",
    "SqliteSessionStore",
    "User",
    "VaultSettings",
    "get_hasher",
]
