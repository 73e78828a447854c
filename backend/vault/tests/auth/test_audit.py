from unittest.mock import AsyncMock

from vault.auth.audit import AuditTrail
from vault.auth.models import LOCAL_PROVIDER, AuditAction, ClientInfo


class TestAuditTrail:
    async def test_records_entry(self, audit, audit_repo, clock):
        await audit.record(
            AuditAction.LOGIN_FAILED,
            success=False,
            user_id="u1",
            email="alice@example.com",
            client=ClientInfo(ip_address="203.0.113.7", user_agent="curl/8"),
            failure_reason="invalid_password",
        )

        (entry,) = await audit_repo.list_for_user("u1")
        assert entry.action == AuditAction.LOGIN_FAILED
        assert entry.provider == LOCAL_PROVIDER
        assert entry.user_agent == "curl/8"
        assert entry.created_at == clock()

    async def test_newest_first(self, audit, audit_repo, clock):
        await audit.record(AuditAction.SIGNUP, success=True, user_id="u1")
        clock.advance(seconds=1)
        await audit.record(AuditAction.LOGIN, success=True, user_id="u1")

        entries = await audit_repo.list_for_user("u1")

        assert [e.action for e in entries] == [AuditAction.LOGIN, AuditAction.SIGNUP]

    async def test_write_failure_is_swallowed(self):
        repo = AsyncMock()
        repo.append.side_effect = RuntimeError("disk full")

        await AuditTrail(repo).record(AuditAction.LOGIN, success=True, user_id="u1")

        repo.append.assert_awaited_once()
