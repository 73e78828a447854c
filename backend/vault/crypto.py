"""Field-level encryption for referral URLs and notes, plus privacy hashes.

Link URLs and notes are stored as Fernet tokens. The Fernet key is derived
from the configured encryption key with SHA-256, so any non-empty string works
as ``VAULT_ENCRYPTION_KEY``.
"""

import base64
import hashlib
import secrets

from cryptography.fernet import Fernet, InvalidToken


class FieldCipher:
    """Symmetric encrypt/decrypt for stored text fields."""

    def __init__(self, key: str) -> None:
        if not key:
            raise ValueError("Encryption key must not be empty")
        derived = hashlib.sha256(key.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(derived))

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a stored value. Raises ValueError if it was not produced with this key."""
        try:
            return self._fernet.decrypt(ciphertext.encode("ascii")).decode("utf-8")
        except InvalidToken as e:
            raise ValueError("Stored field could not be decrypted") from e


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def hash_ip(ip: str) -> str:
    return sha256_hex(ip)


def hash_user_agent(user_agent: str) -> str:
    return sha256_hex(user_agent)


def generate_invite_code() -> str:
    return secrets.token_hex(16)


def generate_share_token() -> str:
    return secrets.token_hex(32)
