from typing import List, Optional, Type

from sqlalchemy import MetaData

from football_league.models.base import Entity, Navigation, metadata
from football_league.models.league import League, leagues
from football_league.models.team import Team, teams
from football_league.models.match import Match, matches
from football_league.models.coach import Coach, coaches

# Dictionnaire de tous les modèles par type d'entité pour un accès facile
ENTITY_MODELS = {
    'league': League,
    'team': Team,
    'match': Match,
    'coach': Coach,
}

# Ordre d'insertion respectant les clés étrangères (leagues, teams, ...)
TABLE_ORDER: List[str] = [table.name for table in metadata.sorted_tables]


def get_model_by_entity_type(entity_type: str) -> Optional[Type[Entity]]:
    return ENTITY_MODELS.get(entity_type)


def build_metadata(cascade_league_delete: bool = False) -> MetaData:
    """
    Construit les métadonnées utilisées pour créer le schéma.

    Args:
        cascade_league_delete: Si True, la suppression d'une ligue supprime
            ses équipes (ON DELETE CASCADE sur teams.league_id)

    Returns:
        Copie des métadonnées partagées
    """
    target = MetaData()
    for table in metadata.sorted_tables:
        table.to_metadata(target)

    if cascade_league_delete:
        for constraint in target.tables["teams"].foreign_key_constraints:
            if constraint.referred_table.name == "leagues":
                constraint.ondelete = "CASCADE"

    return target


__all__ = [
    'Entity', 'Navigation', 'metadata', 'build_metadata', 'TABLE_ORDER',
    'League', 'Team', 'Match', 'Coach',
    'leagues', 'teams', 'matches', 'coaches',
    'ENTITY_MODELS', 'get_model_by_entity_type',
]
