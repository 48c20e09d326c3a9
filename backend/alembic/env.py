"""
Alembic Migration Environment
==============================

What:  Points Alembic at the notes schema and an async engine.
Why:   Schema changes to the `notes` table ship as versioned migrations
       instead of create_all() on a production database.
How:   Builds an async engine from DATABASE_URL and runs each migration
       through connection.run_sync().
Who:   The `alembic` CLI (upgrade, downgrade, revision --autogenerate).
When:  Deployments and local schema work; tests use create_tables() instead.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

from notekeeper.config import settings
from notekeeper.database import Base

# Registers the notes table on Base.metadata for --autogenerate
from notekeeper.models.note import Note  # noqa: F401

# Values from alembic.ini
config = context.config

# Logger setup from the [loggers] sections of alembic.ini
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# What: The metadata autogenerate diffs against the live database
target_metadata = Base.metadata

# DATABASE_URL wins over sqlalchemy.url in alembic.ini, so the app and its
# migrations always target the same database
config.set_main_option("sqlalchemy.url", settings.database_url)


def run_migrations_offline() -> None:
    """
    Emit migration SQL without connecting.

    What:  Writes the DDL to stdout for review or for a DBA to apply.
    How:   Configures the context from the URL alone; no engine is created.
    """
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    """Run pending revisions on a sync-facing connection, in one transaction."""
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """
    Apply pending revisions against the live database.

    What:  Opens one async connection and hands it to do_run_migrations.
    How:   asyncpg/aiosqlite engine; NullPool because the process exits
           right after the migration run.
    """
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
