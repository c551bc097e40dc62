from __future__ import annotations

import asyncio
import logging
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine.url import make_url

from widget_access.db import models  # noqa: F401  (registers tables on Base.metadata)
from widget_access.db.base import Base
from widget_access.db.settings import get_db_settings

# --- App logging (optional) ---
USE_APP_LOGGING = os.getenv("ALEMBIC_USE_APP_LOGGING", "1") == "1"
if USE_APP_LOGGING:
    from widget_access.app.core.logging import setup_logging

    setup_logging(level=os.getenv("LOG_LEVEL"), fmt=os.getenv("LOG_FORMAT"))

# --- Alembic config & logging ---
config = context.config
if not USE_APP_LOGGING and config.config_file_name is not None:
    fileConfig(config.config_file_name)

# --- Database URL: DB_DATABASE_URL / DATABASE_URL win over alembic.ini ---
if os.getenv("DB_DATABASE_URL") or os.getenv("DATABASE_URL"):
    config.set_main_option("sqlalchemy.url", get_db_settings().resolved_database_url)

target_metadata = Base.metadata

url_str = config.get_main_option("sqlalchemy.url") or ""
driver = ""
try:
    driver = make_url(url_str).get_dialect().driver
except Exception:
    logging.getLogger(__name__).debug("could not resolve driver for %r", url_str)
is_async = driver in {"asyncpg", "aiosqlite"}


def run_migrations_offline():
    context.configure(
        url=url_str,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        compare_server_default=True,
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online_async():
    from sqlalchemy.ext.asyncio import create_async_engine

    connectable = create_async_engine(url_str, poolclass=pool.NullPool, future=True)
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


def run_migrations_online_sync():
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        future=True,
    )
    with connectable.connect() as connection:
        do_run_migrations(connection)
    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
elif is_async:
    asyncio.run(run_migrations_online_async())
else:
    run_migrations_online_sync()
