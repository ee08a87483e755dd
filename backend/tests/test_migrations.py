"""
Migration tests.

Verifies:
- `flask db upgrade` builds a schema identical to the models
- Downgrading to base removes every table it created
- Running migrations leaves the application logger working
"""

import logging
from pathlib import Path

from alembic.autogenerate import compare_metadata
from alembic.migration import MigrationContext
from flask_migrate import downgrade, upgrade
from sqlalchemy import inspect

from kouriten import create_app
from kouriten.config import TestingConfig
from kouriten.extensions import db

MIGRATIONS_DIR = str(Path(__file__).resolve().parents[1] / "migrations")


def _file_app(tmp_path):
    class FileDatabaseConfig(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'migrations.sqlite3'}"

    return create_app(FileDatabaseConfig)


def test_upgrade_matches_models_and_downgrade_drops_everything(tmp_path):
    app = _file_app(tmp_path)

    with app.app_context():
        upgrade(directory=MIGRATIONS_DIR)

        with db.engine.connect() as conn:
            diff = compare_metadata(MigrationContext.configure(conn), db.metadata)
        assert diff == []

        tables = set(inspect(db.engine).get_table_names())
        assert set(db.metadata.tables) <= tables

        downgrade(directory=MIGRATIONS_DIR, revision="base")
        assert inspect(db.engine).get_table_names() == ["alembic_version"]

        db.session.remove()
        db.engine.dispose()


def test_upgrade_keeps_app_logger_enabled(tmp_path):
    app = _file_app(tmp_path)

    with app.app_context():
        upgrade(directory=MIGRATIONS_DIR)
        db.engine.dispose()

    assert not logging.getLogger(app.name).disabled
