"""Password hashing: protocol, Argon2 (production), and simple SHA-256 (tests).

Argon2Hasher is memory-hard and CPU-bound, so both hashing and verification
run off the event loop using anyio.to_thread.run_sync().

SimpleHasher uses SHA-256 with a "simple$" prefix for instant hashing.
It is intended for tests only.
"""

from __future__ import annotations

import hashlib
from typing import Protocol, runtime_checkable

import argon2
from anyio import to_thread
from argon2.exceptions import InvalidHashError, VerificationError


@runtime_checkable
class PasswordHasher(Protocol):
    """Hash and verify passwords."""

    async def hash(self, plain: str) -> str: ...

    async def verify(self, plain: str, hashed: str) -> bool: ...


class Argon2Hasher:
    """Production hasher using argon2id with the library's default cost parameters."""

    def __init__(self) -> None:
        self._hasher = argon2.PasswordHasher()

    async def hash(self, plain: str) -> str:
        return await to_thread.run_sync(self._hasher.hash, plain)

    async def verify(self, plain: str, hashed: str) -> bool:
        """Return False on mismatch or malformed hash; never raise for bad input."""
        try:
            return await to_thread.run_sync(self._hasher.verify, hashed, plain)
        except (VerificationError, InvalidHashError):
            return False


_SIMPLE_PREFIX = "simple$"


class SimpleHasher:
    """Fast SHA-256 hasher for tests. Not suitable for production use."""

    async def hash(self, plain: str) -> str:
        return _SIMPLE_PREFIX + hashlib.sha256(plain.encode("utf-8")).hexdigest()

    async def verify(self, plain: str, hashed: str) -> bool:
        if not hashed.startswith(_SIMPLE_PREFIX):
            return False
        return hashed == await self.hash(plain)


def get_hasher(name: str = "argon2") -> PasswordHasher:
    """Return a PasswordHasher by name ("argon2" or "simple")."""
    if name == "argon2":
        return Argon2Hasher()
    if name == "simple":
        return SimpleHasher()
    raise ValueError(f"Unknown password hasher: {name!r}")
