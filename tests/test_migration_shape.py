from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from core.models import Base

MIGRATION = Path("alembic/versions/20261017_0001_engine_schema.py")


def test_required_tables_present_in_migration():
    text = MIGRATION.read_text()
    for table in Base.metadata.tables:
        assert f'"{table}"' in text


def test_migrations_avoid_postgres_now_function_for_portability():
    for migration_file in Path("alembic/versions").glob("*.py"):
        text = migration_file.read_text(encoding="utf-8").lower()
        assert "now()" not in text, f"Non-portable now() found in {migration_file.name}"


def test_alembic_upgrade_head_succeeds_on_sqlite(tmp_path, monkeypatch):
    db_path = tmp_path / "migration_smoke.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")

    command.upgrade(Config("alembic.ini"), "head")

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        tables = set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    assert set(Base.metadata.tables) <= tables


def test_migrated_columns_match_models(tmp_path, monkeypatch):
    db_path = tmp_path / "migration_columns.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")

    command.upgrade(Config("alembic.ini"), "head")

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        inspector = inspect(engine)
        for name, table in Base.metadata.tables.items():
            migrated = {c["name"] for c in inspector.get_columns(name)}
            assert set(table.columns.keys()) == migrated, name
    finally:
        engine.dispose()
