from pathlib import Path

import pytest

from src.adapters.sqlite.migrator import SQLiteMigrator

PROJECT_ROOT = Path(__file__).parent.parent
MIGRATIONS_DIR = str(PROJECT_ROOT / "migrations")


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "members.db")


@pytest.fixture
def migrated_db(db_path):
    """A temporary SQLite database with every migration applied."""
    SQLiteMigrator(db_path, MIGRATIONS_DIR).run_migrations()
    return db_path
