"""
groupstats/migrations/env.py — Alembic environment.

The database URL is taken from the app configuration selected by
GROUPSTATS_ENV (development, testing or production), so migrations always
target the same database as the services:

    GROUPSTATS_ENV=production alembic upgrade head
"""

from __future__ import annotations

import os
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import engine_from_config, pool

# Make `import groupstats` work from a source checkout.
_project_root = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(_project_root))

from groupstats.app import create_app  # noqa: E402
from groupstats.app.extensions import db  # noqa: E402

# create_app() loads .env, imports every model module and resolves the URL.
_app = create_app(os.getenv("GROUPSTATS_ENV", "development"))
_db_url = _app.config["SQLALCHEMY_DATABASE_URI"]

target_metadata = db.metadata

config = context.config
config.set_main_option("sqlalchemy.url", _db_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _configure(**kwargs) -> None:
    # Metric columns are generated; compare types so widened columns show up.
    context.configure(target_metadata=target_metadata, compare_type=True, **kwargs)


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    _configure(
        url=_db_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
