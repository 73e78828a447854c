"""Error taxonomy shared by the auth core and the HTTP layer.

The portal maps each class to one HTTP status. Messages on
AuthenticationFailure subclasses are generic and safe to show; the precise
reason only travels to the audit log.
"""

from __future__ import annotations


class VaultError(Exception):
    """Base class for expected, client-facing failures."""

    status_code = 500


class ValidationFailure(VaultError):
    """Malformed input. Carries per-field messages, never the input values."""

    status_code = 400

    def __init__(self, message: str, fields: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.fields = fields or {}


class ConflictError(VaultError):
    status_code = 409


class ResourceNotFound(VaultError):
    status_code = 404


class AccessDenied(VaultError):
    """Caller is authenticated but may not act on the resource."""

    status_code = 403


class AuthenticationFailure(VaultError):
    status_code = 401


class AccountLocked(AuthenticationFailure):
    pass


class InvalidResetToken(VaultError):
    """Reset secret unknown, used, or expired. Deliberately indistinguishable."""

    status_code = 400

    def __init__(self) -> None:
        super().__init__("Invalid or expired reset token")


class OAuthError(AuthenticationFailure):
    """Provider exchange failed or returned an unusable profile."""


class AccountLinkRequired(OAuthError):
    """Provider email matches a local account but silent linking is disabled."""
