from football_league.db.connection import Database
from football_league.db.context import EntitySet, FootballLeagueContext
from football_league.db.query import EntityQuery
from football_league.db.tracking import ChangeTracker, EntityEntry, EntityState

__all__ = [
    'Database', 'FootballLeagueContext', 'EntitySet', 'EntityQuery',
    'ChangeTracker', 'EntityEntry', 'EntityState',
]
