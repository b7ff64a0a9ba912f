"""
Per-domain repository modules for database access.

Repositories take the SQLAlchemy ``Session`` as their first argument and
flush but do not commit.
"""
