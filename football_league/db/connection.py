# football_league/db/connection.py
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from football_league.config import settings
from football_league.db.context import FootballLeagueContext
from football_league.models import build_metadata

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite n'applique les clés étrangères que si on le demande à chaque connexion
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Accès à la base de données: moteur asynchrone avec pool de connexions.

    Exemple:
    ```
    database = Database()
    async with database.unit_of_work() as context:
        context.add(League(name="Serie A"))
    await database.dispose()
    ```
    """

    def __init__(self, url: Optional[str] = None, cascade_league_delete: Optional[bool] = None, **engine_options):
        """
        Initialise le moteur.

        Args:
            url: URL de connexion (None = settings.database_url)
            cascade_league_delete: Schéma créé avec suppression en cascade des
                équipes d'une ligue (None = settings.LEAGUE_DELETE_CASCADE)
            **engine_options: Options supplémentaires pour create_async_engine
        """
        self.url = make_url(url or settings.database_url)
        if cascade_league_delete is None:
            cascade_league_delete = settings.LEAGUE_DELETE_CASCADE
        self.cascade_league_delete = cascade_league_delete

        options = {}
        if not self.is_sqlite:
            # Pool de connexions pour les bases serveur
            options.update(
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_recycle=settings.DB_POOL_RECYCLE,
                pool_pre_ping=True,
            )
        options.update(engine_options)

        self.engine: AsyncEngine = create_async_engine(self.url, **options)
        if self.is_sqlite:
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        logger.info(f"Moteur de base de données initialisé ({self.url.render_as_string(hide_password=True)})")

    @property
    def is_sqlite(self) -> bool:
        return self.url.get_backend_name() == "sqlite"

    def context(self) -> FootballLeagueContext:
        """Ouvre un nouveau contexte (une unité de travail)."""
        return FootballLeagueContext(self)

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[FootballLeagueContext]:
        """
        Context manager pour une unité de travail.
        Enregistre les modifications en sortie normale et ferme toujours le contexte.

        Exemple:
        ```
        async with database.unit_of_work() as context:
            league = await context.leagues.find(1)
            league.name = "Ligue 1"
        ```
        """
        context = self.context()
        try:
            yield context
            await context.save_changes()
        except Exception as e:
            logger.error(f"Database error: {str(e)}")
            raise
        finally:
            context.close()

    async def create_schema(self) -> None:
        """Crée les tables absentes (hors migrations)."""
        target = build_metadata(self.cascade_league_delete)
        async with self.engine.begin() as conn:
            await conn.run_sync(target.create_all)
        logger.info(f"Schéma créé (cascade ligue -> équipes: {self.cascade_league_delete})")

    async def drop_schema(self) -> None:
        target = build_metadata(self.cascade_league_delete)
        async with self.engine.begin() as conn:
            await conn.run_sync(target.drop_all)
        logger.info("Schéma supprimé")

    async def dispose(self) -> None:
        """Ferme toutes les connexions du pool."""
        await self.engine.dispose()
