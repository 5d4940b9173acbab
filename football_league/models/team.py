from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import Column, ForeignKey, Integer, String, Table

from football_league.models.base import Entity, collection, dependent, metadata, reference

teams = Table(
    "teams",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(255), nullable=False, index=True),
    # RESTRICT par défaut, voir build_metadata() pour la variante en cascade
    Column("league_id", Integer, ForeignKey("leagues.id", ondelete="RESTRICT"), nullable=False, index=True),
)


@dataclass(eq=False, repr=False)
class Team(Entity):
    """
    Équipe appartenant à une ligue.

    Une équipe a au plus un entraîneur (clé portée par Coach) et participe
    aux matchs dans deux rôles distincts: domicile et extérieur.
    """
    __table__ = teams
    __navigations__ = {
        "league": reference("League", "league_id", inverse="teams"),
        "coach": dependent("Coach", "team_id", inverse="team"),
        "home_matches": collection("Match", "home_team_id", inverse="home_team"),
        "away_matches": collection("Match", "away_team_id", inverse="away_team"),
    }

    name: Optional[str] = None
    league_id: Optional[int] = None

    league: Optional["League"] = None
    coach: Optional["Coach"] = None
    home_matches: List["Match"] = field(default_factory=list)
    away_matches: List["Match"] = field(default_factory=list)

    def __repr__(self):
        return f"<Team(id={self.id}, name='{self.name}', league_id={self.league_id})>"
