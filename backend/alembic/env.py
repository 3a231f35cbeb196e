"""
Alembic environment for the coffee pairing schema.

The application talks to the database through async drivers; migrations run
on the matching synchronous driver.
"""
import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import make_url

# Make the coffee_pairing package importable when run from backend/
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from coffee_pairing.core.config import get_settings  # noqa: E402
from coffee_pairing.core.database import Base  # noqa: E402
import coffee_pairing.models  # noqa: E402,F401

SYNC_DRIVERS = {
    "postgresql+asyncpg": "postgresql+psycopg2",
    "sqlite+aiosqlite": "sqlite",
}

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def migration_url() -> str:
    """The application DATABASE_URL (environment or .env) on a sync driver."""
    url = make_url(get_settings().DATABASE_URL)
    sync_driver = SYNC_DRIVERS.get(url.drivername)
    if sync_driver:
        url = url.set(drivername=sync_driver)
    return url.render_as_string(hide_password=False)


def run_migrations_offline():
    """Emit SQL to stdout without connecting."""
    context.configure(
        url=migration_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = create_engine(migration_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
