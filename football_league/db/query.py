"""Requêtes sur un type d'entité."""
from typing import TYPE_CHECKING, Any, List, Optional, Tuple, Type

from sqlalchemy import ColumnElement, Select, func, select

from football_league.exceptions import MultipleResultsError, NoResultError
from football_league.models import Entity

if TYPE_CHECKING:
    from football_league.db.context import FootballLeagueContext


class EntityQuery:
    """
    Requête immuable sur un type d'entité.

    Chaque méthode de construction retourne une nouvelle requête; les
    opérateurs terminaux (to_list, first, count, ...) sont asynchrones et
    exécutent la requête via le contexte.

    Exemple:
    ```
    team = await context.teams.include("coach").filter_by(name="Juventus").first_or_default()
    ```
    """

    def __init__(
        self,
        context: "FootballLeagueContext",
        entity_type: Type[Entity],
        clauses: Tuple[ColumnElement, ...] = (),
        ordering: Tuple[Any, ...] = (),
        includes: Tuple[str, ...] = (),
        tracking: bool = True,
        limit_count: Optional[int] = None
    ):
        self.context = context
        self.entity_type = entity_type
        self.clauses = clauses
        self.ordering = ordering
        self.includes = includes
        self.tracking = tracking
        self.limit_count = limit_count

    def _clone(self, **changes) -> "EntityQuery":
        values = {
            "clauses": self.clauses,
            "ordering": self.ordering,
            "includes": self.includes,
            "tracking": self.tracking,
            "limit_count": self.limit_count,
        }
        values.update(changes)
        return EntityQuery(self.context, self.entity_type, **values)

    @property
    def table(self):
        return self.entity_type.__table__

    def _column(self, field: str):
        return self.table.c[field]

    # Construction

    def where(self, *clauses: ColumnElement) -> "EntityQuery":
        """Ajoute des conditions SQLAlchemy, ex: Team.c.league_id == 1"""
        return self._clone(clauses=self.clauses + clauses)

    def filter_by(self, **values) -> "EntityQuery":
        """Ajoute des conditions d'égalité (attribut=valeur)."""
        clauses = tuple(self._column(field) == value for field, value in values.items())
        return self.where(*clauses)

    def like(self, field: str, pattern: str) -> "EntityQuery":
        """Filtre avec l'opérateur LIKE de la base (motif fourni tel quel, ex: '%Mil%')."""
        return self.where(self._column(field).like(pattern))

    def contains(self, field: str, text: str) -> "EntityQuery":
        """Filtre les lignes dont le champ contient le texte (LIKE '%texte%' échappé)."""
        return self.where(self._column(field).contains(text, autoescape=True))

    def where_related(self, navigation: str) -> "EntityQuery":
        """
        Garde les entités ayant au moins une entité liée par la navigation.

        Exemple: équipes ayant au moins un match à domicile
        ```
        context.teams.where_related("home_matches")
        ```
        """
        nav = self.entity_type.navigation(navigation)
        if nav.is_reference:
            return self.where(self._column(nav.foreign_key).isnot(None))

        target_table = nav.target.__table__
        exists = select(target_table.c.id).where(target_table.c[nav.foreign_key] == self.table.c.id).exists()
        return self.where(exists)

    def order_by(self, *columns) -> "EntityQuery":
        """Tri explicite; sans tri, l'ordre des lignes n'est pas garanti."""
        resolved = tuple(self._column(column) if isinstance(column, str) else column for column in columns)
        return self._clone(ordering=self.ordering + resolved)

    def limit(self, count: int) -> "EntityQuery":
        return self._clone(limit_count=count)

    def include(self, *paths: str) -> "EntityQuery":
        """Chargement anticipé des navigations, ex: include("away_matches.home_team")"""
        return self._clone(includes=self.includes + paths)

    def as_no_tracking(self) -> "EntityQuery":
        """Les entités retournées ne sont pas suivies par le contexte."""
        return self._clone(tracking=False)

    def as_tracking(self) -> "EntityQuery":
        return self._clone(tracking=True)

    def statement(self) -> Select:
        statement = select(self.table)
        if self.clauses:
            statement = statement.where(*self.clauses)
        if self.ordering:
            statement = statement.order_by(*self.ordering)
        if self.limit_count is not None:
            statement = statement.limit(self.limit_count)
        return statement

    def _aggregate(self, expression) -> Select:
        statement = select(expression).select_from(self.table)
        if self.clauses:
            statement = statement.where(*self.clauses)
        return statement

    # Opérateurs terminaux

    async def to_list(self) -> List[Entity]:
        return await self.context.execute_query(self)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for entity in await self.to_list():
            yield entity

    async def first_or_default(self) -> Optional[Entity]:
        entities = await self.limit(1).to_list()
        return entities[0] if entities else None

    async def first(self) -> Entity:
        entity = await self.first_or_default()
        if entity is None:
            raise NoResultError(f"Aucun {self.entity_type.__name__} ne correspond à la requête")
        return entity

    async def single_or_default(self) -> Optional[Entity]:
        entities = await self.limit(2).to_list()
        if len(entities) > 1:
            raise MultipleResultsError(f"Plusieurs {self.entity_type.__name__} correspondent à la requête")
        return entities[0] if entities else None

    async def single(self) -> Entity:
        entity = await self.single_or_default()
        if entity is None:
            raise NoResultError(f"Aucun {self.entity_type.__name__} ne correspond à la requête")
        return entity

    async def count(self) -> int:
        return await self.context.execute_scalar(self._aggregate(func.count()))

    async def long_count(self) -> int:
        # Même résultat que count(), les entiers Python ne débordent pas
        return await self.count()

    async def min(self, field: str) -> Any:
        return await self.context.execute_scalar(self._aggregate(func.min(self._column(field))))

    async def max(self, field: str) -> Any:
        return await self.context.execute_scalar(self._aggregate(func.max(self._column(field))))

    async def find(self, entity_id: int) -> Optional[Entity]:
        """Recherche par identifiant, None si absent."""
        if self.tracking and not self.includes and not self.clauses:
            return await self.context.find(self.entity_type, entity_id)
        return await self.where(self.table.c.id == entity_id).first_or_default()

    def __repr__(self):
        return f"<EntityQuery(entity_type={self.entity_type.__name__}, tracking={self.tracking})>"
