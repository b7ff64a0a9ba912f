"""
Database engine and session management.

Builds the SQLAlchemy engine from environment configuration with a test
fallback (SQLite in-memory) and exposes unit-of-work helpers for callers
that drive the member store.
"""
import logging
import os
import sys
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

IN_MEMORY_URL = "sqlite+pysqlite:///:memory:"


# Database connection URL
# Generate dynamically from individual components if DATABASE_URL is not provided
def _get_database_url() -> str:
    # If DATABASE_URL is explicitly set, use it
    if os.getenv("DATABASE_URL"):
        return os.getenv("DATABASE_URL")

    # Otherwise, generate from individual components (all must be set)
    db_user = os.getenv("POSTGRES_USER")
    db_password = os.getenv("POSTGRES_PASSWORD")
    db_host = os.getenv("POSTGRES_HOST")
    db_port = os.getenv("POSTGRES_PORT")
    db_name = os.getenv("POSTGRES_DB")

    if not all([db_user, db_password, db_host, db_port, db_name]):
        missing = []
        if not db_user: missing.append("POSTGRES_USER")
        if not db_password: missing.append("POSTGRES_PASSWORD")
        if not db_host: missing.append("POSTGRES_HOST")
        if not db_port: missing.append("POSTGRES_PORT")
        if not db_name: missing.append("POSTGRES_DB")
        raise ValueError(f"Missing required database environment variables: {', '.join(missing)}")

    return f"postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


def _is_pytest_runtime() -> bool:
    """Best-effort detection that we're executing under pytest.

    ``PYTEST_CURRENT_TEST`` is only set while a test body runs, so module
    import during collection is detected through ``sys.modules`` instead.
    ``PYTEST_RUNNING=1`` forces the answer for tooling that imports early.
    """
    if os.getenv("PYTEST_RUNNING") == "1":
        return True
    if "PYTEST_CURRENT_TEST" in os.environ:
        return True
    return "pytest" in sys.modules


def resolve_database_url() -> str:
    """Pick the URL the module-level engine binds to.

    1. ``MYBOARD_TEST_DB`` wins when set.
    2. Under pytest, an in-memory SQLite database.
    3. Otherwise ``DATABASE_URL`` or the ``POSTGRES_*`` components.
    """
    explicit_test_db = os.getenv("MYBOARD_TEST_DB")
    if explicit_test_db:
        return explicit_test_db
    if _is_pytest_runtime():
        return IN_MEMORY_URL
    return _get_database_url()


def _engine_kwargs(url: str) -> dict:
    kwargs: dict = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url:
            # StaticPool so the schema persists across connections
            kwargs["poolclass"] = StaticPool
    if os.getenv("DATABASE_ECHO", "false").lower() == "true":
        kwargs["echo"] = True
    return kwargs


def _enable_sqlite_savepoints(eng: Engine) -> None:
    """Let SQLAlchemy, not pysqlite, decide when transactions begin.

    pysqlite defers BEGIN until the first DML statement, which breaks
    SAVEPOINT/RELEASE inside an outer transaction.
    """

    @event.listens_for(eng, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(url: str) -> Engine:
    """Create an engine for ``url`` with the dialect-specific tweaks applied."""
    eng = create_engine(url, **_engine_kwargs(url))
    if eng.dialect.name == "sqlite":
        _enable_sqlite_savepoints(eng)
    return eng


def make_session_factory(bind: Engine) -> sessionmaker:
    """Session factory with the settings every unit of work uses.

    ``expire_on_commit=False`` keeps members returned from one unit of work
    readable (and re-savable) after it commits.
    """
    return sessionmaker(autoflush=False, expire_on_commit=False, bind=bind)


DATABASE_URL = resolve_database_url()

engine = build_engine(DATABASE_URL)

SessionLocal = make_session_factory(engine)


def create_schema(bind: Engine | None = None) -> None:
    """Create all tables on ``bind`` (defaults to the module engine)."""
    from myboard.db import models  # local import keeps model loading lazy

    models.Base.metadata.create_all(bind=bind or engine)


# In-memory SQLite has no migrations applied; every pooled connection shares
# one database via StaticPool so creating the tables once is enough.
if DATABASE_URL.startswith("sqlite") and ":memory:" in DATABASE_URL:
    create_schema()


def get_db() -> Iterator[Session]:
    """Dependency to get a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Provide a transactional scope around a series of operations.

    Commits when the block exits normally and rolls back when it raises.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        logger.warning("Rolling back unit of work", exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()
