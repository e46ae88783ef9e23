"""
Alembic Migration Environment — users schema
=============================================

What:  Applies the `users` table migrations to DATABASE_URL.
How:   The URL always comes from user_registry settings; alembic.ini only
       carries logging. Online runs go through an async engine and
       connection.run_sync(); offline runs print SQL.

Dialects:
    PostgreSQL (asyncpg) is the deployment target. SQLite works for local
    experiments: batch mode is switched on there because SQLite cannot
    alter constraints in place.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine
from alembic import context

from user_registry.config import settings
from user_registry.database import Base

# Registers the users table on Base.metadata for --autogenerate
from user_registry.models.user import User  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _configure(**kwargs) -> None:
    dialect_name = kwargs.pop("dialect_name")
    context.configure(
        target_metadata=target_metadata,
        # Catches String(255) → String(320) style changes on autogenerate
        compare_type=True,
        render_as_batch=dialect_name == "sqlite",
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Print the migration SQL for settings.database_url without connecting."""
    url = settings.database_url
    _configure(
        url=url,
        dialect_name=url.split(":", 1)[0].split("+", 1)[0],
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:
    _configure(connection=connection, dialect_name=connection.dialect.name)

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    # One-shot engine; the application's pooled engine is not needed here
    connectable = create_async_engine(settings.database_url, poolclass=pool.NullPool)

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
