"""Alembic migrations for the EquipTrack slot and photo tables.

The database URL comes from equiptrack.config.Settings, so migrations and the
running service always target the same file. Batch mode is on because SQLite
cannot alter columns in place.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context

from equiptrack.config import get_settings
from equiptrack.db.base import Base
from equiptrack.models import photo_blob, storage_slot  # noqa: F401  (registers tables)

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

DATABASE_URL = get_settings().database_url
MIGRATION_OPTIONS = {"target_metadata": Base.metadata, "render_as_batch": True}


def _migrate(connection=None) -> None:
    if connection is None:
        context.configure(url=DATABASE_URL, literal_binds=True, **MIGRATION_OPTIONS)
    else:
        context.configure(connection=connection, **MIGRATION_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


async def _migrate_online() -> None:
    engine = create_async_engine(DATABASE_URL, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    _migrate()
else:
    asyncio.run(_migrate_online())
