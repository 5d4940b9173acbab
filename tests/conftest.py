"""
Fixtures partagées des tests football_league.

Chaque test travaille sur une base SQLite temporaire (aiosqlite), créée à
partir des mêmes métadonnées que la base de production.
"""
import logging
from datetime import datetime
from typing import Dict

import pytest
import pytest_asyncio
from sqlalchemy import event

from football_league.db.connection import Database
from football_league.models import Coach, League, Match, Team


def sqlite_url(tmp_path, name: str = "football.db") -> str:
    return f"sqlite+aiosqlite:///{tmp_path / name}"


@pytest_asyncio.fixture
async def database(tmp_path):
    """Base vide, suppression des ligues en RESTRICT."""
    database = Database(sqlite_url(tmp_path), cascade_league_delete=False)
    await database.create_schema()
    yield database
    await database.dispose()


@pytest_asyncio.fixture
async def cascade_database(tmp_path):
    """Base vide, suppression des ligues en CASCADE vers les équipes."""
    database = Database(sqlite_url(tmp_path, "football_cascade.db"), cascade_league_delete=True)
    await database.create_schema()
    yield database
    await database.dispose()


async def seed(database: Database) -> Dict[str, object]:
    """
    Deux ligues, cinq équipes, un entraîneur et deux matchs.

    Returns:
        Entités enregistrées (détachées), par nom court
    """
    juventus = Team(name="Juventus")
    milan = Team(name="AC Milan")
    roma = Team(name="AS Roma")
    arsenal = Team(name="Arsenal")
    chelsea = Team(name="Chelsea")
    serie_a = League(name="Serie A", teams=[juventus, milan, roma])
    premier = League(name="Premier League", teams=[arsenal, chelsea])

    async with database.unit_of_work() as context:
        context.add_range([serie_a, premier])

    async with database.unit_of_work() as context:
        context.add(Coach(name="Massimiliano Allegri", team_id=juventus.id))
        context.add_range([
            Match(home_team_id=juventus.id, away_team_id=milan.id, date=_date(2023, 10, 1)),
            Match(home_team_id=roma.id, away_team_id=juventus.id, date=_date(2023, 10, 8)),
        ])

    return {
        "serie_a": serie_a,
        "premier": premier,
        "juventus": juventus,
        "milan": milan,
        "roma": roma,
        "arsenal": arsenal,
        "chelsea": chelsea,
    }


def _date(year, month, day):
    return datetime(year, month, day, 20, 45)


@pytest_asyncio.fixture
async def seeded(database):
    return await seed(database)


class StatementCounter:
    """Compte les requêtes SQL envoyées par un moteur."""

    def __init__(self, database: Database):
        self.statements = []
        self._engine = database.engine.sync_engine
        event.listen(self._engine, "before_cursor_execute", self._record)

    def _record(self, conn, cursor, statement, parameters, context, executemany):
        self.statements.append(statement)

    def reset(self):
        self.statements.clear()

    def selects(self):
        return [statement for statement in self.statements if statement.lstrip().upper().startswith("SELECT")]

    def close(self):
        event.remove(self._engine, "before_cursor_execute", self._record)


@pytest.fixture
def statement_counter(database):
    counter = StatementCounter(database)
    yield counter
    counter.close()


@pytest.fixture
def restore_logging():
    """Restaure la configuration du logger racine modifiée par configure_logging."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    engine_level = logging.getLogger("sqlalchemy.engine").level
    yield
    root_logger.handlers = handlers
    root_logger.setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(engine_level)


@pytest_asyncio.fixture
async def cascade_seeded(cascade_database):
    return await seed(cascade_database)
