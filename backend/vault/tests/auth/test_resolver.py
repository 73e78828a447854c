"""Tests for ProviderLinkResolver: callback idempotency, email linking, and races."""

from __future__ import annotations

from datetime import timedelta

import pytest

from vault.auth.models import AuditAction, ClientInfo
from vault.auth.providers import OAuthTokens, ProviderProfile
from vault.auth.resolver import ProviderLinkResolver
from vault.errors import AccountLinkRequired


def _profile(account_id: str = "g-123", email: str | None = "alice@example.com", **fields) -> ProviderProfile:
    return ProviderProfile(
        provider="google",
        provider_account_id=account_id,
        email=email,
        first_name="Alice",
        last_name="Liddell",
        raw={"sub": account_id},
        **fields,
    )


@pytest.fixture
def tokens(clock) -> OAuthTokens:
    return OAuthTokens(access_token="at-1", refresh_token="rt-1", expires_at=clock() + timedelta(hours=1))


@pytest.fixture
def resolver(user_repo, identity_repo, audit, clock) -> ProviderLinkResolver:
    return ProviderLinkResolver(user_repo, identity_repo, audit, clock=clock)


class TestNewAccount:
    async def test_creates_verified_user_and_link(self, resolver, user_repo, identity_repo, tokens):
        identity = await resolver.resolve(_profile(), tokens)

        user = await user_repo.get_by_id(identity.user_id)
        assert user.email == "alice@example.com"
        assert user.email_verified is True
        assert user.password_hash is None
        (link,) = await identity_repo.list_for_user(identity.user_id)
        assert link.provider == "google"
        assert link.access_token == "at-1"

    async def test_profile_without_email(self, resolver, user_repo, tokens):
        identity = await resolver.resolve(_profile(email=None), tokens)

        assert identity.email is None
        assert await user_repo.get_by_id(identity.user_id) is not None

    async def test_audits_provider_login(self, resolver, audit_repo, tokens):
        client = ClientInfo(ip_address="198.51.100.1")
        identity = await resolver.resolve(_profile(), tokens, client)

        (entry,) = await audit_repo.list_for_user(identity.user_id)
        assert entry.action == AuditAction.LOGIN
        assert entry.provider == "google"
        assert entry.ip_address == "198.51.100.1"


class TestRepeatCallback:
    async def test_same_account_resolves_to_same_user(self, resolver, db, tokens):
        first = await resolver.resolve(_profile(), tokens)
        second = await resolver.resolve(_profile(), tokens)

        assert first.user_id == second.user_id
        assert db.connection.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 1
        assert db.connection.execute("SELECT COUNT(*) FROM external_identities").fetchone()[0] == 1

    async def test_refreshes_tokens_keeping_refresh_token(self, resolver, identity_repo, tokens, clock):
        await resolver.resolve(_profile(), tokens)
        newer = OAuthTokens(access_token="at-2", expires_at=clock() + timedelta(hours=2))

        await resolver.resolve(_profile(), newer)

        link = await identity_repo.get_identity("google", "g-123")
        assert link.access_token == "at-2"
        assert link.refresh_token == "rt-1"
        assert link.expires_at == clock() + timedelta(hours=2)

    async def test_updates_last_login(self, resolver, user_repo, tokens, clock):
        identity = await resolver.resolve(_profile(), tokens)
        clock.advance(days=1)

        await resolver.resolve(_profile(), tokens)

        user = await user_repo.get_by_id(identity.user_id)
        assert user.last_login_at == clock()


class TestEmailLinking:
    async def test_links_to_existing_local_account(self, resolver, user_repo, identity_repo, make_user, tokens):
        await user_repo.create_user(make_user(user_id="local-1"))

        identity = await resolver.resolve(_profile(), tokens)

        assert identity.user_id == "local-1"
        user = await user_repo.get_by_id("local-1")
        assert user.password_hash == "simple$unused"
        (link,) = await identity_repo.list_for_user("local-1")
        assert link.provider_account_id == "g-123"

    async def test_email_match_is_exact(self, resolver, user_repo, make_user, tokens):
        await user_repo.create_user(make_user(user_id="local-1", email="alice@example.com"))

        identity = await resolver.resolve(_profile(email="Alice@Example.com"), tokens)

        assert identity.user_id != "local-1"

    async def test_linking_disabled(self, user_repo, identity_repo, audit, audit_repo, make_user, clock, tokens):
        resolver = ProviderLinkResolver(user_repo, identity_repo, audit, link_by_email=False, clock=clock)
        await user_repo.create_user(make_user(user_id="local-1"))

        with pytest.raises(AccountLinkRequired):
            await resolver.resolve(_profile(), tokens)

        assert await identity_repo.list_for_user("local-1") == []
        (entry,) = await audit_repo.list_for_user("local-1")
        assert entry.failure_reason == "account_link_required"


class TestConcurrentFirstLogin:
    async def test_loser_retries_onto_winner(self, resolver, user_repo, identity_repo, db, tokens):
        winner = await resolver.resolve(_profile(email=None), tokens)
        real_get = identity_repo.get_identity
        calls = []

        async def stale_then_real(provider, account_id):
            calls.append(account_id)
            if len(calls) == 1:
                return None
            return await real_get(provider, account_id)

        identity_repo.get_identity = stale_then_real

        loser = await resolver.resolve(_profile(email=None), tokens)

        assert loser.user_id == winner.user_id
        assert len(calls) == 2
        assert db.connection.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 1
