"""Best-effort writer for the auth audit log."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from vault.auth.models import LOCAL_PROVIDER, AuditAction, AuditLogEntry, ClientInfo

if TYPE_CHECKING:
    from collections.abc import Callable

    from vault.dal.audit_repository import AuditLogRepository

logger = structlog.get_logger()


class AuditTrail:
    """Append auth events without ever failing the calling flow.

    A failed write is logged with its traceback and swallowed, so a broken
    audit table cannot block logins or resets.
    """

    def __init__(self, repo: AuditLogRepository, clock: Callable[[], datetime] | None = None) -> None:
        self._repo = repo
        self._clock = clock or (lambda: datetime.now(UTC))

    async def record(
        self,
        action: AuditAction,
        *,
        success: bool,
        user_id: str | None = None,
        email: str | None = None,
        provider: str = LOCAL_PROVIDER,
        client: ClientInfo | None = None,
        failure_reason: str | None = None,
    ) -> None:
        client = client or ClientInfo()
        entry = AuditLogEntry(
            entry_id=str(uuid4()),
            user_id=user_id,
            email=email,
            action=action,
            provider=provider,
            ip_address=client.ip_address,
            user_agent=client.user_agent,
            success=success,
            failure_reason=failure_reason,
            created_at=self._clock(),
        )
        try:
            await self._repo.append(entry)
        except Exception:
            logger.exception("audit write failed", action=action, user_id=user_id)
