"""
Run the Alembic migration chain against a throwaway SQLite database file.
"""
import os

import pytest
from sqlalchemy import create_engine, inspect

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory

from myboard.db import models

pytestmark = pytest.mark.e2e


def _service_root() -> str:
    here = os.path.dirname(__file__)
    return os.path.abspath(os.path.join(here, "..", ".."))


@pytest.fixture
def alembic_cfg(tmp_path, monkeypatch):
    db_url = f"sqlite:///{tmp_path / 'migrations.db'}"
    # env.py reads DATABASE_URL first
    monkeypatch.setenv("DATABASE_URL", db_url)
    cfg = Config(os.path.join(_service_root(), "alembic.ini"))
    cfg.attributes["configure_logger"] = False
    return cfg, db_url


def test_single_head(alembic_cfg):
    cfg, _ = alembic_cfg
    script = ScriptDirectory.from_config(cfg)

    assert len(script.get_heads()) == 1


def test_upgrade_creates_members_table(alembic_cfg):
    cfg, db_url = alembic_cfg

    command.upgrade(cfg, "head")

    eng = create_engine(db_url)
    try:
        insp = inspect(eng)
        assert "members" in insp.get_table_names()
        columns = {col["name"]: col for col in insp.get_columns("members")}
        assert set(columns) == {c.name for c in models.Member.__table__.columns}
        for name in models.REQUIRED_FIELDS:
            assert columns[name]["nullable"] is False
        unique = [ix for ix in insp.get_indexes("members") if ix["unique"]]
        assert [ix["column_names"] for ix in unique] == [["username"]]
    finally:
        eng.dispose()


def test_downgrade_drops_members_table(alembic_cfg):
    cfg, db_url = alembic_cfg

    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")

    eng = create_engine(db_url)
    try:
        assert "members" not in inspect(eng).get_table_names()
    finally:
        eng.dispose()
