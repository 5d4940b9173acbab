"""Exceptions de la couche d'accès aux données."""
from typing import Optional


class FootballLeagueError(Exception):
    """Exception de base de l'application."""
    pass


class ConfigurationError(FootballLeagueError):
    """Configuration incomplète ou invalide."""
    pass


class SessionClosedError(FootballLeagueError):
    """Utilisation d'un contexte déjà fermé."""
    pass


class ConcurrencyConflictError(FootballLeagueError):
    """
    Levée quand une mise à jour ou une suppression n'affecte aucune ligne.

    L'entité a été supprimée (ou son identifiant n'a jamais existé) entre
    le chargement et l'enregistrement. L'appelant peut recharger puis réessayer.
    """

    def __init__(self, entity_type: str, entity_id: Optional[int], operation: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.operation = operation
        super().__init__(
            f"{operation} de {entity_type} {{id: {entity_id}}} : 0 ligne affectée, 1 attendue"
        )


class IdentityConflictError(FootballLeagueError):
    """Une autre instance avec la même identité est déjà suivie par le contexte."""
    pass


class IdentityModifiedError(FootballLeagueError):
    """L'identifiant d'une entité suivie a été modifié."""
    pass


class NoResultError(FootballLeagueError):
    """La requête ne retourne aucun résultat alors qu'au moins un était attendu."""
    pass


class MultipleResultsError(FootballLeagueError):
    """La requête retourne plusieurs résultats alors qu'un seul était attendu."""
    pass


class UnknownNavigationError(FootballLeagueError):
    """Chemin d'inclusion ou navigation inexistante sur une entité."""
    pass
