"""Migration runner for the marketplace schema.

The URL comes from DATABASE_URL (the same setting the API reads), with
the async driver swapped for psycopg2 because Alembic runs synchronously.
Autogenerate compares against every table registered in
marketplace/db/tables.py, column types and server defaults included.
"""

from __future__ import annotations

from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool

import marketplace.db.tables  # noqa: F401  (registers tables on Base.metadata)
from alembic import context
from marketplace.core.config import SETTINGS
from marketplace.db.engine import Base, sync_database_url

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

if SETTINGS.database_url:
    config.set_main_option("sqlalchemy.url", sync_database_url(SETTINGS.database_url))

_COMPARE = {
    "target_metadata": Base.metadata,
    "compare_type": True,
    "compare_server_default": True,
}


def run_offline() -> None:
    """Render the upgrade as SQL (alembic upgrade head --sql)."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_COMPARE,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    engine = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        # One transaction per revision so a failed step leaves earlier ones applied.
        context.configure(connection=connection, transaction_per_migration=True, **_COMPARE)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
