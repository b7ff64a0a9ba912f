"""
SQLAlchemy models for the member store.

Exposes `Base`, `now_utc`, and the ORM classes so callers (and Alembic's
env.py) can import everything from `myboard.db.models`.
"""

from .base import Base, now_utc  # re-export

from .members import Member, Role, REQUIRED_FIELDS

__all__ = [
    # base
    "Base",
    "now_utc",
    # members
    "Member",
    "Role",
    "REQUIRED_FIELDS",
]
