"""
Password hashing for member accounts.

Responsibilities:
- Hash raw passwords with Argon2id (salted, self-describing encoded form)
- Verify a raw password against a stored hash without raising
- Mark encoder output so the store can tell hashes from raw input
"""
from __future__ import annotations

import os

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from argon2.low_level import Type

ENCODED_PREFIX = "$argon2id$"


class EncodedPassword(str):
    """A string known to be the output of a password encoder.

    Any hashing scheme qualifies; the store only checks for this marker.
    """

    __slots__ = ()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


class PasswordEncoder:
    """Encode and match member passwords using Argon2id."""

    def __init__(
        self,
        *,
        time_cost: int = 2,
        memory_cost: int = 102400,
        parallelism: int = 8,
        hash_len: int = 32,
    ) -> None:
        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=hash_len,
            type=Type.ID,
        )

    @classmethod
    def from_env(cls) -> "PasswordEncoder":
        """Build an encoder from the ``MYBOARD_ARGON2_*`` environment variables."""
        return cls(
            time_cost=_env_int("MYBOARD_ARGON2_TIME_COST", 2),
            memory_cost=_env_int("MYBOARD_ARGON2_MEMORY_COST", 102400),
            parallelism=_env_int("MYBOARD_ARGON2_PARALLELISM", 8),
        )

    def encode(self, raw_password: str) -> EncodedPassword:
        if raw_password is None or raw_password == "":
            raise ValueError("Password must not be empty")
        return EncodedPassword(self._hasher.hash(raw_password))

    def matches(self, raw_password: str, encoded_password: str) -> bool:
        if not raw_password or not encoded_password:
            return False
        try:
            return self._hasher.verify(encoded_password, raw_password)
        except (VerificationError, InvalidHashError):
            return False

    def needs_rehash(self, encoded_password: str) -> bool:
        """True when the hash was produced with different cost parameters."""
        return self._hasher.check_needs_rehash(encoded_password)

