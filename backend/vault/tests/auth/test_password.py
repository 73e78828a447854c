"""Tests for password hashers."""

import pytest

from vault.auth.password import Argon2Hasher, PasswordHasher, SimpleHasher, get_hasher


class TestArgon2Hasher:
    async def test_hash_and_verify(self):
        hasher = Argon2Hasher()
        hashed = await hasher.hash("correct horse battery")

        assert hashed.startswith("$argon2id$")
        assert await hasher.verify("correct horse battery", hashed) is True

    async def test_wrong_password(self):
        hasher = Argon2Hasher()
        hashed = await hasher.hash("correct horse battery")

        assert await hasher.verify("wrong horse battery", hashed) is False

    async def test_same_password_hashes_differently(self):
        hasher = Argon2Hasher()

        assert await hasher.hash("same-password") != await hasher.hash("same-password")

    async def test_malformed_hash_returns_false(self):
        hasher = Argon2Hasher()

        assert await hasher.verify("anything", "not-a-hash") is False


class TestSimpleHasher:
    async def test_roundtrip(self):
        hasher = SimpleHasher()
        hashed = await hasher.hash("password123")

        assert hashed.startswith("simple$")
        assert await hasher.verify("password123", hashed) is True
        assert await hasher.verify("password124", hashed) is False

    async def test_rejects_foreign_hash_format(self):
        hasher = SimpleHasher()

        assert await hasher.verify("password123", "$argon2id$v=19$garbage") is False


class TestGetHasher:
    def test_known_names(self):
        assert isinstance(get_hasher("argon2"), Argon2Hasher)
        assert isinstance(get_hasher("simple"), SimpleHasher)
        assert isinstance(get_hasher(), PasswordHasher)

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown password hasher"):
            get_hasher("md5")
