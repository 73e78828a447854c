"""Shared fixtures for portal tests: an app on a temp database and client helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from starlette.testclient import TestClient

from portal.server.app import create_app
from portal.server.settings import PortalServerSettings
from vault.auth.settings import VaultSettings

if TYPE_CHECKING:
    from pathlib import Path

    from vault.auth.reset import IssuedReset

TEST_SESSION_SECRET = "test-session-secret"  # noqa: S105
PASSWORD = "securepass123"  # noqa: S105


class RecordingMailer:
    """Reset mailer that keeps issued resets for assertions."""

    def __init__(self) -> None:
        self.sent: list[IssuedReset] = []

    async def send_reset(self, issued: IssuedReset) -> None:
        self.sent.append(issued)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def make_app(tmp_path: Path, mailer: RecordingMailer):
    """Build portal apps on a temp database; VaultSettings fields may be overridden."""
    apps = []

    def _make_app(oauth_client=None, **overrides):
        values = {
            "session_secret": TEST_SESSION_SECRET,
            "encryption_key": "test-encryption-key",
            "database_path": str(tmp_path / "portal.db"),
            "password_hasher": "simple",
            "public_base_url": "http://testserver",
        }
        values.update(overrides)
        app = create_app(
            PortalServerSettings(cors_origins=[]),
            VaultSettings(**values),
            oauth_client=oauth_client,
            reset_mailer=mailer,
        )
        apps.append(app)
        return app

    yield _make_app
    for app in apps:
        app.state.db.close()


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def signed_in(app):
    """Factory: a TestClient holding a fresh session for a newly signed-up user."""

    def _signed_in(email: str, password: str = PASSWORD, **profile) -> TestClient:
        client = TestClient(app)
        response = client.post("/api/auth/signup", json={"email": email, "password": password, **profile})
        assert response.status_code == 201, response.text
        return client

    return _signed_in
