from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Column, ForeignKey, Integer, String, Table

from football_league.models.base import Entity, metadata, reference

coaches = Table(
    "coaches",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(255), nullable=False, index=True),
    # Un entraîneur peut être sans équipe, une équipe a au plus un entraîneur
    Column("team_id", Integer, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True, unique=True),
)


@dataclass(eq=False, repr=False)
class Coach(Entity):
    __table__ = coaches
    __navigations__ = {
        "team": reference("Team", "team_id", inverse="coach"),
    }

    name: Optional[str] = None
    team_id: Optional[int] = None

    team: Optional["Team"] = None

    def __repr__(self):
        return f"<Coach(name='{self.name}', team_id={self.team_id})>"
