"""One-way password hashing with PBKDF2-HMAC-SHA512.

Hash and salt are stored as base64 text. Verification recomputes the key
with the stored salt and compares in constant time.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import secrets

SALT_SIZE = 16
KEY_SIZE = 32
ITERATIONS = 100_000
HASH_NAME = "sha512"


class PasswordHasher:
    """Stateless PBKDF2 hasher. Safe to share between services."""

    def __init__(self, *, iterations: int = ITERATIONS) -> None:
        self._iterations = iterations

    def _derive(self, password: str, salt: bytes) -> bytes:
        return hashlib.pbkdf2_hmac(
            HASH_NAME,
            password.encode("utf-8"),
            salt,
            self._iterations,
            dklen=KEY_SIZE,
        )

    def hash(self, password: str) -> tuple[str, str]:
        """Return ``(hash, salt)`` for *password*, both base64-encoded."""
        salt = secrets.token_bytes(SALT_SIZE)
        key = self._derive(password, salt)
        return base64.b64encode(key).decode("ascii"), base64.b64encode(salt).decode("ascii")

    def verify(self, password: str, hashed: str, salt: str) -> bool:
        """Check *password* against a stored hash/salt pair."""
        try:
            salt_bytes = base64.b64decode(salt, validate=True)
            expected = base64.b64decode(hashed, validate=True)
        except (binascii.Error, ValueError):
            return False
        return hmac.compare_digest(self._derive(password, salt_bytes), expected)
