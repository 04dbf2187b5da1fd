"""
Alembic Migration Environment
===============================

What:  Runs the storefront migrations against `settings.database_url`.
How:   Online mode opens an async connection and hands it to Alembic through
       run_sync(); offline mode renders SQL only. Both use batch mode on
       SQLite, whose ALTER TABLE cannot change constraints in place.
Who:   `alembic upgrade head` / `alembic revision --autogenerate`, run from
       the backend/ directory.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine
from alembic import context

from storefront.config import settings
from storefront.database import Base

# Registers every table on Base.metadata for --autogenerate
import storefront.models  # noqa: F401

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)


def _configure(**options) -> None:
    context.configure(
        target_metadata=Base.metadata,
        render_as_batch=settings.is_sqlite,
        compare_type=True,
        **options,
    )


def run_offline() -> None:
    _configure(
        url=settings.database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_online() -> None:
    # Foreign-key enforcement stays off here: batch mode copies and drops
    # tables, which would fire ON DELETE CASCADE.
    migration_engine = create_async_engine(settings.database_url, poolclass=pool.NullPool)
    try:
        async with migration_engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await migration_engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    asyncio.run(run_online())
