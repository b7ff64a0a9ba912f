"""
Errors raised by the member store.

Lookups never raise for a missing row; they return ``None`` and leave it to
the caller to decide whether absence is an error.
"""
from __future__ import annotations

from typing import Iterable, Optional


class MemberStoreError(Exception):
    """Base class for member store failures."""


class MemberConstraintError(MemberStoreError):
    """A write was rejected; nothing was persisted."""


class MissingFieldError(MemberConstraintError):
    def __init__(self, fields: Iterable[str]):
        self.fields = tuple(fields)
        super().__init__(f"Missing required member fields: {', '.join(self.fields)}")


class PlaintextPasswordError(MemberConstraintError):
    def __init__(self) -> None:
        super().__init__("Member password must be an encoded hash, not plaintext")


class DuplicateUsernameError(MemberConstraintError):
    def __init__(self, username: Optional[str]):
        self.username = username
        super().__init__(f"Username already taken: {username!r}")


class MemberNotFoundError(MemberStoreError):
    def __init__(self, member_id):
        self.member_id = member_id
        super().__init__(f"Member not found: {member_id!r}")
