"""Password hashing for the user directory.

The directory stores whatever the hasher returns and asks the same hasher
to check login attempts, so the scheme can be swapped without touching the
repository code.
"""

from __future__ import annotations

import hmac
from typing import Protocol

from werkzeug.security import check_password_hash, generate_password_hash


class PasswordHasher(Protocol):
    """Turns a password into a stored credential and checks it later."""

    def hash(self, password: str) -> str: ...

    def verify(self, stored: str, password: str) -> bool: ...


class WerkzeugPasswordHasher:
    """Salted one-way hash via werkzeug (pbkdf2:sha256 by default)."""

    def __init__(self, method: str = "pbkdf2:sha256", salt_length: int = 16):
        self.method = method
        self.salt_length = salt_length

    def hash(self, password: str) -> str:
        return generate_password_hash(
            password, method=self.method, salt_length=self.salt_length
        )

    def verify(self, stored: str, password: str) -> bool:
        if not stored:
            return False
        try:
            return check_password_hash(stored, password)
        except ValueError:
            # Not a werkzeug hash (e.g. a legacy plaintext row)
            return False


class PlaintextPasswordHasher:
    """Stores passwords as-is.

    Only for databases written by the legacy service, which kept passwords
    in the clear.
    """

    def hash(self, password: str) -> str:
        return password

    def verify(self, stored: str, password: str) -> bool:
        if stored is None:
            return False
        return hmac.compare_digest(stored.encode("utf-8"), password.encode("utf-8"))
