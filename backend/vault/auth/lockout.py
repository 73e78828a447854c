"""Account lockout after repeated failed password attempts.

The policy is a two-state machine over ``User.failed_login_attempts`` and
``User.account_locked_until``:

- unlocked + failure below the threshold: counter increments.
- unlocked + failure reaching the threshold: locked for ``duration``; the
  counter stays at the threshold.
- locked (now < account_locked_until): attempts are rejected before the
  password is verified.
- lock expired + success: counter resets and the lock clears. A failure
  after expiry re-locks at once, since the counter is still at the threshold.

The policy only computes field updates; callers persist them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from datetime import datetime

    from vault.auth.models import User

LOCKOUT_THRESHOLD = 5
LOCKOUT_DURATION = timedelta(minutes=30)


class LockState(StrEnum):
    UNLOCKED = "unlocked"
    LOCKED = "locked"


@dataclass(frozen=True)
class LockoutPolicy:
    threshold: int = LOCKOUT_THRESHOLD
    duration: timedelta = LOCKOUT_DURATION

    def state(self, user: User, now: datetime) -> LockState:
        if user.account_locked_until is not None and now < user.account_locked_until:
            return LockState.LOCKED
        return LockState.UNLOCKED

    def after_failure(self, user: User, now: datetime) -> dict[str, Any]:
        """Field updates for a failed verification of an unlocked account."""
        attempts = min(user.failed_login_attempts + 1, self.threshold)
        updates: dict[str, Any] = {"failed_login_attempts": attempts}
        if attempts >= self.threshold:
            updates["account_locked_until"] = now + self.duration
        return updates

    def after_success(self, now: datetime) -> dict[str, Any]:
        return {"failed_login_attempts": 0, "account_locked_until": None, "last_login_at": now}
