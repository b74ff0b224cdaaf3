from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from momentum.config import StoreSettings
from momentum.db.collections import TASKS, USERS
from momentum.db.record_store import RecordStore

ROOT = Path(__file__).resolve().parents[2]


def _alembic_config(url: str) -> Config:
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", url)
    return cfg


def test_upgrade_creates_collections_and_indexes(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    command.upgrade(_alembic_config(url), "head")

    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        assert {"users", "tasks", "milestones", "remembered_session"} <= set(inspector.get_table_names())
        milestone_indexes = {ix["name"] for ix in inspector.get_indexes("milestones")}
        assert {"idx_milestones_user_id", "idx_milestones_task_id"} <= milestone_indexes
        unique_user_indexes = {ix["name"] for ix in inspector.get_indexes("users") if ix["unique"]}
        assert {"ix_users_username", "ix_users_email"} <= unique_user_indexes
    finally:
        engine.dispose()


@pytest.mark.asyncio
async def test_store_runs_on_migrated_schema(tmp_path):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    command.upgrade(_alembic_config(url), "head")

    async with RecordStore(StoreSettings(database_url=url, auto_create_schema=False)) as store:
        uid = await store.put(USERS, {"username": "alice", "email": "alice@example.com", "password": "pw"})
        await store.put(TASKS, {"user_id": uid, "title": "t"})
        assert (await store.get(USERS, uid)).theme == "light"
        assert len(await store.scan_by_index(TASKS, "user_id", uid)) == 1
