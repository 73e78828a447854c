"""Tests for VaultSettings configuration."""

import pytest
from pydantic import ValidationError

from vault.auth.settings import SEVEN_DAYS_SECONDS, VaultSettings


@pytest.fixture
def _required_env(monkeypatch):
    monkeypatch.setenv("VAULT_SESSION_SECRET", "s")
    monkeypatch.setenv("VAULT_ENCRYPTION_KEY", "k")


class TestVaultSettings:
    def test_missing_session_secret_raises(self, monkeypatch):
        monkeypatch.delenv("VAULT_SESSION_SECRET", raising=False)
        monkeypatch.setenv("VAULT_ENCRYPTION_KEY", "k")
        with pytest.raises(ValidationError, match="session_secret"):
            VaultSettings()

    def test_missing_encryption_key_raises(self, monkeypatch):
        monkeypatch.setenv("VAULT_SESSION_SECRET", "s")
        monkeypatch.delenv("VAULT_ENCRYPTION_KEY", raising=False)
        with pytest.raises(ValidationError, match="encryption_key"):
            VaultSettings()

    @pytest.mark.usefixtures("_required_env")
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("VAULT_PASSWORD_HASHER", raising=False)
        settings = VaultSettings()

        assert settings.database_path == "backend/storage.db"
        assert settings.session_ttl_seconds == SEVEN_DAYS_SECONDS
        assert settings.session_sliding is True
        assert settings.cookie_secure is False
        assert settings.password_hasher == "argon2"
        assert settings.oauth_link_by_email is True

    @pytest.mark.usefixtures("_required_env")
    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv("VAULT_SESSION_TTL_SECONDS", "60")
        monkeypatch.setenv("VAULT_OAUTH_LINK_BY_EMAIL", "false")
        monkeypatch.setenv("VAULT_COOKIE_SECURE", "true")
        settings = VaultSettings()

        assert settings.session_ttl_seconds == 60
        assert settings.oauth_link_by_email is False
        assert settings.cookie_secure is True

    @pytest.mark.usefixtures("_required_env")
    def test_rejects_non_positive_ttl(self, monkeypatch):
        monkeypatch.setenv("VAULT_SESSION_TTL_SECONDS", "0")
        with pytest.raises(ValidationError, match="session_ttl_seconds"):
            VaultSettings()

    @pytest.mark.usefixtures("_required_env")
    def test_provider_credentials(self, monkeypatch):
        monkeypatch.setenv("VAULT_LINKEDIN_CLIENT_ID", "li-id")
        monkeypatch.setenv("VAULT_LINKEDIN_CLIENT_SECRET", "li-secret")
        settings = VaultSettings()

        assert settings.provider_credentials("linkedin") == ("li-id", "li-secret")
        assert settings.provider_credentials("unknown") == ("", "")
