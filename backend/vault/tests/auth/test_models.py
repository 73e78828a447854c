import pytest
from pydantic import ValidationError

from vault.auth.models import Identity


class TestUser:
    def test_empty_password_hash_rejected(self, make_user):
        with pytest.raises(ValidationError, match="password_hash"):
            make_user(password_hash="")

    def test_oauth_only_user(self, make_user):
        assert make_user(password_hash=None).password_hash is None

    def test_negative_attempts_rejected(self, make_user):
        with pytest.raises(ValidationError):
            make_user(failed_login_attempts=-1)


class TestIdentity:
    def test_projection_drops_credentials(self, make_user):
        identity = Identity.from_user(make_user(first_name="Alice", failed_login_attempts=3))

        dumped = identity.model_dump(by_alias=True)
        assert dumped == {
            "id": "u1",
            "email": "alice@example.com",
            "firstName": "Alice",
            "lastName": None,
            "profileImageUrl": None,
        }

    @pytest.mark.parametrize(
        ("fields", "expected"),
        [
            ({"first_name": "Alice", "last_name": "Liddell"}, "Alice Liddell"),
            ({"first_name": "Alice"}, "Alice"),
            ({"email": "alice@example.com"}, "alice@example.com"),
            ({}, "u1"),
        ],
    )
    def test_display_name(self, fields, expected):
        assert Identity(user_id="u1", **fields).display_name == expected
