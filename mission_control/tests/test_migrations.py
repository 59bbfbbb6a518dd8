import os

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from mission_control.config import get_settings

PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _alembic_config() -> Config:
    config = Config()
    config.set_main_option("script_location", os.path.join(PACKAGE_DIR, "migrations"))
    return config


def test_upgrade_and_downgrade(tmp_path, monkeypatch):
    url = f"sqlite:///{(tmp_path / 'migrated.db').as_posix()}"
    monkeypatch.setenv("DATABASE_URL", url)
    get_settings.cache_clear()
    try:
        command.upgrade(_alembic_config(), "head")

        engine = create_engine(url)
        inspector = inspect(engine)
        assert {"integrations", "health_checks"} <= set(inspector.get_table_names())
        columns = {c["name"] for c in inspector.get_columns("integrations")}
        assert {"credential_source", "last_validated", "validation_message", "metadata"} <= columns
        indexes = {i["name"] for i in inspector.get_indexes("health_checks")}
        assert {"idx_health_checks_target", "idx_health_checks_checked"} <= indexes
        engine.dispose()

        command.downgrade(_alembic_config(), "base")

        engine = create_engine(url)
        assert "integrations" not in inspect(engine).get_table_names()
        engine.dispose()
    finally:
        get_settings.cache_clear()
