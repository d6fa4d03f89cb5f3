"""Alembic environment for the VidTube schema.

The database url comes from Settings (VIDTUBE_DATABASE_URL), never from
alembic.ini, and online runs reuse build_engine() so SQLite gets the
same foreign-key pragma the app uses. SQLite can't ALTER most things in
place, so its migrations render as batch operations.
"""

import asyncio
from logging.config import fileConfig

from alembic import context

from vidtube.config import Settings
from vidtube.db.engine import build_engine
from vidtube.db.models import Base

config = context.config
settings = Settings()

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        render_as_batch=settings.database_url.startswith("sqlite"),
        **kwargs,
    )


def run_offline() -> None:
    """Emit SQL to stdout instead of touching a database."""
    _configure(
        url=settings.database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_online() -> None:
    engine = build_engine(settings)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    asyncio.run(run_online())
