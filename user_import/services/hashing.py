from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from typing import Protocol

"""Password hashing capability injected into the import coordinator.

The pipeline depends only on the PasswordHasher protocol. The default
implementation stores PBKDF2-SHA256 hashes in the self-describing form
``pbkdf2_sha256$<iterations>$<salt>$<digest>``; verify() reads the iteration
count from the stored hash, not from the hasher instance.
"""

__all__ = [
    "PasswordHasher",
    "Pbkdf2PasswordHasher",
    "DEFAULT_ITERATIONS",
]

ALGORITHM = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 600_000
SALT_BYTES = 16


class PasswordHasher(Protocol):
    def hash(self, plaintext: str) -> str: ...

    def verify(self, hashed: str, plaintext: str) -> bool: ...


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class Pbkdf2PasswordHasher:
    """PBKDF2-SHA256 hasher with a random per-password salt."""

    def __init__(self, iterations: int = DEFAULT_ITERATIONS) -> None:
        if iterations < 1:
            raise ValueError("iterations must be positive")
        self.iterations = iterations

    def _digest(self, plaintext: str, salt: bytes, iterations: int) -> bytes:
        return hashlib.pbkdf2_hmac("sha256", plaintext.encode("utf-8"), salt, iterations)

    def hash(self, plaintext: str) -> str:
        salt = secrets.token_bytes(SALT_BYTES)
        digest = self._digest(plaintext, salt, self.iterations)
        return f"{ALGORITHM}${self.iterations}${_b64(salt)}${_b64(digest)}"

    def verify(self, hashed: str, plaintext: str) -> bool:
        try:
            algorithm, iterations, salt_b64, digest_b64 = hashed.split("$")
            if algorithm != ALGORITHM:
                return False
            salt = base64.b64decode(salt_b64)
            expected = base64.b64decode(digest_b64)
            rounds = int(iterations)
        except ValueError:  # malformed hash string (binascii.Error included)
            return False
        if rounds < 1:
            return False
        actual = self._digest(plaintext, salt, rounds)
        return hmac.compare_digest(actual, expected)
