from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Table

from football_league.models.base import Entity, metadata, reference

# Les deux clés vers teams sont en RESTRICT: une cascade sur deux chemins
# vers la même table rendrait l'ordre de suppression ambigu.
# home_team_id != away_team_id n'est volontairement pas contraint.
matches = Table(
    "matches",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("home_team_id", Integer, ForeignKey("teams.id", ondelete="RESTRICT"), nullable=False, index=True),
    Column("away_team_id", Integer, ForeignKey("teams.id", ondelete="RESTRICT"), nullable=False, index=True),
    Column("date", DateTime, nullable=False),
    Index("ix_matches_home_away", "home_team_id", "away_team_id"),
)


@dataclass(eq=False, repr=False)
class Match(Entity):
    """Match entre une équipe à domicile et une équipe à l'extérieur."""
    __table__ = matches
    __navigations__ = {
        "home_team": reference("Team", "home_team_id", inverse="home_matches"),
        "away_team": reference("Team", "away_team_id", inverse="away_matches"),
    }

    home_team_id: Optional[int] = None
    away_team_id: Optional[int] = None
    date: Optional[datetime] = None

    home_team: Optional["Team"] = None
    away_team: Optional["Team"] = None

    def __repr__(self):
        return f"<Match(id={self.id}, home_team_id={self.home_team_id}, away_team_id={self.away_team_id})>"
