"""
Pydantic schemas for the member store.

Re-exports the member schemas so callers can use `myboard.db.schemas.X`.
"""

from .members import MemberBase, MemberCreate, MemberUpdate, Member

__all__ = [
    "MemberBase",
    "MemberCreate",
    "MemberUpdate",
    "Member",
]
