"""Auth settings for sessions, credentials, and identity providers."""

from pydantic import Field
from pydantic_settings import BaseSettings

SEVEN_DAYS_SECONDS = 7 * 24 * 60 * 60


class VaultSettings(BaseSettings):
    model_config = {"env_prefix": "VAULT_", "populate_by_name": True}

    # HMAC key for session and OAuth state cookies -- required, no default.
    session_secret: str = Field(min_length=1)

    # Key for link URL/notes encryption at rest -- required, no default.
    encryption_key: str = Field(min_length=1)

    database_path: str = "backend/storage.db"

    # Cookie Secure flag -- True in production, False for local dev (HTTP)
    cookie_secure: bool = False

    session_ttl_seconds: int = Field(default=SEVEN_DAYS_SECONDS, gt=0)
    # Sliding sessions push expiry forward on every authenticated request.
    session_sliding: bool = True

    password_hasher: str = "argon2"

    # Base URL used for OAuth callback URLs and password reset links.
    public_base_url: str = "http://localhost:5000"

    # Attach a first-time provider login to an existing account with the same email.
    oauth_link_by_email: bool = True

    google_client_id: str = ""
    google_client_secret: str = ""
    microsoft_client_id: str = ""
    microsoft_client_secret: str = ""
    linkedin_client_id: str = ""
    linkedin_client_secret: str = ""
    facebook_client_id: str = ""
    facebook_client_secret: str = ""

    def provider_credentials(self, provider: str) -> tuple[str, str]:
        """Return (client_id, client_secret) for a provider; empty strings when unset."""
        return getattr(self, f"{provider}_client_id", ""), getattr(self, f"{provider}_client_secret", "")
