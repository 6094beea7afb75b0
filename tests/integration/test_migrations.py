"""Alembic migrations build the same schema the models describe."""

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, event, inspect, text

from exposure_store.config import get_settings

PROJECT_ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture
def alembic_config(tmp_path, monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", url)
    yield config
    get_settings.cache_clear()


def _inspect(config: Config):
    engine = create_engine(config.get_main_option("sqlalchemy.url"))
    return engine, inspect(engine)


def test_upgrade_creates_tables(alembic_config):
    command.upgrade(alembic_config, "head")

    engine, inspector = _inspect(alembic_config)
    try:
        assert {"users", "organizations", "reports"} <= set(inspector.get_table_names())

        columns = {c["name"]: c for c in inspector.get_columns("reports")}
        assert set(columns) == {
            "id",
            "owner_user",
            "owner_org",
            "exposed_count",
            "created_at",
            "last_updated_at",
        }
        assert columns["owner_user"]["nullable"] is True
        assert columns["owner_org"]["nullable"] is True
        assert columns["exposed_count"]["nullable"] is False

        uniques = {u["name"] for u in inspector.get_unique_constraints("reports")}
        assert {"uq_reports_owner_user", "uq_reports_owner_org"} <= uniques

        checks = {c["name"] for c in inspector.get_check_constraints("reports")}
        assert {"ck_reports_single_owner", "ck_reports_exposed_count_non_negative"} <= checks

        indexes = {i["name"] for i in inspector.get_indexes("reports")}
        assert "ix_reports_last_updated_at_id" in indexes

        foreign_keys = {fk["referred_table"]: fk for fk in inspector.get_foreign_keys("reports")}
        assert set(foreign_keys) == {"users", "organizations"}
        assert foreign_keys["users"]["options"].get("ondelete") == "RESTRICT"
    finally:
        engine.dispose()


def test_owner_keys_can_cascade(alembic_config, monkeypatch):
    monkeypatch.setenv("OWNER_FK_ON_DELETE", "CASCADE")
    get_settings.cache_clear()

    command.upgrade(alembic_config, "head")

    engine, inspector = _inspect(alembic_config)
    try:
        for fk in inspector.get_foreign_keys("reports"):
            assert fk["options"].get("ondelete") == "CASCADE"
    finally:
        engine.dispose()


def test_cascade_removes_report_with_owner(alembic_config, monkeypatch):
    monkeypatch.setenv("OWNER_FK_ON_DELETE", "CASCADE")
    get_settings.cache_clear()
    command.upgrade(alembic_config, "head")

    engine = create_engine(alembic_config.get_main_option("sqlalchemy.url"))

    @event.listens_for(engine, "connect")
    def _foreign_keys_on(dbapi_connection, connection_record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    user_id = "5f0c6a1e-2b3d-4c5e-8f7a-9b0c1d2e3f4a"
    try:
        with engine.begin() as conn:
            conn.execute(
                text("INSERT INTO users (id, email, created_at) VALUES (:id, :email, :ts)"),
                {"id": user_id, "email": "cascade@example.com", "ts": "2025-10-08 00:00:00.000000"},
            )
            conn.execute(
                text(
                    "INSERT INTO reports (id, owner_user, exposed_count, created_at, last_updated_at) "
                    "VALUES (:id, :owner, 1, :ts, :ts)"
                ),
                {
                    "id": "8a7b6c5d-4e3f-4a2b-9c1d-0e9f8a7b6c5d",
                    "owner": user_id,
                    "ts": "2025-10-08 00:00:00.000000",
                },
            )
        with engine.begin() as conn:
            conn.execute(text("DELETE FROM users WHERE id = :id"), {"id": user_id})
            remaining = conn.execute(text("SELECT COUNT(*) FROM reports")).scalar_one()
        assert remaining == 0
    finally:
        engine.dispose()


def test_downgrade_removes_tables(alembic_config):
    command.upgrade(alembic_config, "head")
    command.downgrade(alembic_config, "base")

    engine, inspector = _inspect(alembic_config)
    try:
        assert not {"users", "organizations", "reports"} & set(inspector.get_table_names())
    finally:
        engine.dispose()
