import os

import pytest

# Make the database module pick the in-memory test engine even when it is
# imported before pytest has started a test.
os.environ.setdefault("PYTEST_RUNNING", "1")

import myboard.db.database as db_module
from myboard.db import models
from myboard.utils.passwords import PasswordEncoder


@pytest.fixture(scope="session")
def _engine():
    db_module.create_schema(db_module.engine)
    return db_module.engine


@pytest.fixture(scope="session")
def _SessionLocal(_engine):
    return db_module.make_session_factory(_engine)


# Per-test transactional session (fast cleanup without truncation)
@pytest.fixture
def db_session(_engine, _SessionLocal):
    connection = _engine.connect()
    trans = connection.begin()
    session = _SessionLocal(bind=connection, join_transaction_mode="create_savepoint")
    try:
        yield session
    finally:
        session.close()
        trans.rollback()
        connection.close()


# File-backed database whose commits are real; session_scope() binds to it
@pytest.fixture
def file_engine(tmp_path, monkeypatch):
    eng = db_module.build_engine(f"sqlite:///{tmp_path / 'members.db'}")
    db_module.create_schema(eng)
    monkeypatch.setattr(db_module, "SessionLocal", db_module.make_session_factory(eng))
    yield eng
    eng.dispose()


@pytest.fixture
def file_member_count(file_engine):
    def _count() -> int:
        with db_module.make_session_factory(file_engine)() as db:
            return db.query(models.Member).count()
    return _count


@pytest.fixture(scope="session")
def encoder():
    # Minimal Argon2 cost keeps the suite fast; production uses from_env()
    return PasswordEncoder(time_cost=1, memory_cost=8, parallelism=1)
