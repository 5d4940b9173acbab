"""Environnement Alembic pour les migrations du schéma football_league.

L'URL vient de l'option sqlalchemy.url si elle est renseignée, sinon de la
configuration de l'application (DATABASE_URL ou champs DB_*). De même pour
league_delete_cascade et LEAGUE_DELETE_CASCADE.
"""
import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

from football_league.config import settings
from football_league.models import build_metadata

config = context.config

if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", settings.database_url.replace("%", "%%"))

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# Option league_delete_cascade lue par les révisions (clé étrangère teams.league_id)
cascade_option = config.get_main_option("league_delete_cascade")
if cascade_option:
    league_delete_cascade = cascade_option.lower() in ("true", "1", "yes", "on")
else:
    league_delete_cascade = settings.LEAGUE_DELETE_CASCADE
config.set_main_option("league_delete_cascade", "true" if league_delete_cascade else "false")

target_metadata = build_metadata(league_delete_cascade)


def run_migrations_offline() -> None:
    """Mode 'offline': génère le script SQL sans connexion."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,  # ALTER TABLE sous SQLite
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Mode 'online': connexion asynchrone à la base."""
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
