import pytest
from pydantic import ValidationError

from portal.server.settings import PortalServerSettings


class TestPortalServerSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PORTAL_LOG_DIR", raising=False)
        monkeypatch.delenv("PORTAL_CORS_ORIGINS", raising=False)
        settings = PortalServerSettings()
        assert settings.log_dir == "backend/logs/portal"
        assert settings.cors_origins == []

    def test_log_dir_override(self, monkeypatch):
        monkeypatch.setenv("PORTAL_LOG_DIR", "custom/portal-logs")
        assert PortalServerSettings().log_dir == "custom/portal-logs"

    def test_cors_origins_json_array(self, monkeypatch):
        monkeypatch.setenv("PORTAL_CORS_ORIGINS", '["http://x.com","http://y.com"]')
        assert PortalServerSettings().cors_origins == ["http://x.com", "http://y.com"]

    def test_cors_origins_csv(self, monkeypatch):
        monkeypatch.setenv("PORTAL_CORS_ORIGINS", "http://x.com,http://y.com")
        assert PortalServerSettings().cors_origins == ["http://x.com", "http://y.com"]

    def test_cors_origins_empty_allowed(self, monkeypatch):
        monkeypatch.setenv("PORTAL_CORS_ORIGINS", "")
        assert PortalServerSettings().cors_origins == []

    def test_cors_origins_invalid_json_raises(self, monkeypatch):
        monkeypatch.setenv("PORTAL_CORS_ORIGINS", "[not json")
        with pytest.raises(ValidationError, match="cors_origins"):
            PortalServerSettings()
