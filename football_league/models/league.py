from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import Column, Integer, String, Table

from football_league.models.base import Entity, collection, metadata

leagues = Table(
    "leagues",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(255), nullable=False, index=True),
)


@dataclass(eq=False, repr=False)
class League(Entity):
    """Ligue de football, propriétaire de ses équipes."""
    __table__ = leagues
    __navigations__ = {
        "teams": collection("Team", "league_id", inverse="league"),
    }

    name: Optional[str] = None

    teams: List["Team"] = field(default_factory=list)

    def __repr__(self):
        return f"<League(id={self.id}, name='{self.name}')>"
