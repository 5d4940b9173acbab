"""
Contexte de la base de données: unité de travail sur les ligues, équipes,
matchs et entraîneurs.

Un contexte correspond à une unité de travail et ne doit pas être partagé
entre tâches concurrentes: ouvrir un contexte par tâche.
"""
import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence, Type

from sqlalchemy import Select, delete, insert, update
from sqlalchemy.exc import SQLAlchemyError

from football_league.db.loading import Materializer, load_includes, parse_includes, set_navigation
from football_league.db.query import EntityQuery
from football_league.db.tracking import ChangeTracker, EntityEntry, EntityState
from football_league.exceptions import ConcurrencyConflictError, SessionClosedError
from football_league.models import Coach, Entity, League, Match, Team

if TYPE_CHECKING:
    from football_league.db.connection import Database

logger = logging.getLogger(__name__)


class EntitySet:
    """
    Point d'accès à un type d'entité.

    Les méthodes de requête (where, include, to_list, ...) sont déléguées à
    une nouvelle EntityQuery; les méthodes d'écriture au contexte.
    """

    _QUERY_METHODS = {
        "where", "filter_by", "like", "contains", "where_related", "order_by", "limit",
        "include", "as_no_tracking", "to_list", "first", "first_or_default", "single",
        "single_or_default", "count", "long_count", "min", "max", "statement",
    }

    def __init__(self, context: "FootballLeagueContext", entity_type: Type[Entity]):
        self.context = context
        self.entity_type = entity_type

    def query(self) -> EntityQuery:
        return self.context.query(self.entity_type)

    def __getattr__(self, name: str):
        if name in self._QUERY_METHODS:
            return getattr(self.query(), name)
        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    def __aiter__(self):
        return self.query().__aiter__()

    async def find(self, entity_id: int) -> Optional[Entity]:
        return await self.context.find(self.entity_type, entity_id)

    def add(self, entity: Entity) -> EntityEntry:
        return self.context.add(entity)

    def add_range(self, entities: Iterable[Entity]) -> None:
        self.context.add_range(entities)

    def update(self, entity: Entity) -> EntityEntry:
        return self.context.update(entity)

    def remove(self, entity: Entity) -> None:
        self.context.remove(entity)

    def remove_range(self, entities: Iterable[Entity]) -> None:
        self.context.remove_range(entities)

    def __repr__(self):
        return f"<EntitySet({self.entity_type.__name__})>"


class FootballLeagueContext:
    """
    Unité de travail.

    Les entités chargées avec suivi sont enregistrées dans le ChangeTracker;
    les ajouts, modifications et suppressions s'accumulent jusqu'à
    save_changes(), qui les applique dans une seule transaction.

    Exemple:
    ```
    async with database.context() as context:
        league = await context.leagues.find(3)
        league.name = "Scottish Premiership"
        await context.save_changes()
    ```
    """

    def __init__(self, database: "Database"):
        self.database = database
        self.tracker = ChangeTracker()
        self._closed = False

        self.leagues = EntitySet(self, League)
        self.teams = EntitySet(self, Team)
        self.matches = EntitySet(self, Match)
        self.coaches = EntitySet(self, Coach)

    async def __aenter__(self) -> "FootballLeagueContext":
        self._ensure_open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Le contexte est fermé")

    def close(self) -> None:
        """Ferme le contexte: les entités suivies sont détachées sans être enregistrées."""
        if not self._closed:
            self.tracker.clear()
            self._closed = True

    def set(self, entity_type: Type[Entity]) -> EntitySet:
        return EntitySet(self, entity_type)

    def query(self, entity_type: Type[Entity]) -> EntityQuery:
        self._ensure_open()
        return EntityQuery(self, entity_type)

    # Suivi des entités

    def add(self, entity: Entity) -> EntityEntry:
        """
        Ajoute une entité et les entités non suivies atteignables depuis elle.

        Args:
            entity: Nouvelle entité (sans identifiant en général)

        Returns:
            Entrée de suivi de l'entité
        """
        self._ensure_open()
        entry = self.tracker.entry(entity)
        if entry is None:
            entry = self.tracker.track_added(entity)
        self.tracker.attach_graph([entity], EntityState.UNCHANGED)
        return entry

    def add_range(self, entities: Iterable[Entity]) -> None:
        for entity in entities:
            self.add(entity)

    def update(self, entity: Entity) -> EntityEntry:
        """
        Attache une entité pour mise à jour complète.

        L'entité est marquée modifiée sans comparaison avec la base: toutes
        ses colonnes seront écrites. Sans identifiant, elle est ajoutée.

        Raises:
            IdentityConflictError: Si une autre instance de même identité est suivie
        """
        self._ensure_open()
        if self.tracker.entry(entity) is None and entity.id is None:
            entry = self.tracker.track_added(entity)
        else:
            entry = self.tracker.track_modified(entity)
        self.tracker.attach_graph([entity], EntityState.MODIFIED)
        return entry

    def update_range(self, entities: Iterable[Entity]) -> None:
        for entity in entities:
            self.update(entity)

    def remove(self, entity: Entity) -> None:
        """
        Marque une entité pour suppression au prochain enregistrement.

        Une entité ajoutée mais jamais enregistrée est simplement détachée.
        """
        self._ensure_open()
        if self.tracker.entry(entity) is None and entity.id is None:
            raise ValueError(f"Impossible de supprimer un {type(entity).__name__} sans identifiant")
        self.tracker.mark_deleted(entity)

    def remove_range(self, entities: Iterable[Entity]) -> None:
        for entity in entities:
            self.remove(entity)

    def entry(self, entity: Entity) -> Optional[EntityEntry]:
        return self.tracker.entry(entity)

    def state_of(self, entity: Entity) -> EntityState:
        return self.tracker.state_of(entity)

    def entries(self) -> List[EntityEntry]:
        """
        Entrées du suivi après détection des modifications.

        Returns:
            Liste des entrées, affichables sous la forme "Team {id: 2} Modified"
        """
        self._ensure_open()
        self.tracker.detect_changes()
        return self.tracker.entries()

    # Lecture

    async def find(self, entity_type: Type[Entity], entity_id: int) -> Optional[Entity]:
        """
        Recherche par identifiant: d'abord parmi les entités suivies, puis en base.

        Returns:
            L'entité ou None si elle n'existe pas
        """
        self._ensure_open()
        entity = self.tracker.lookup(entity_type, entity_id)
        if entity is not None:
            return entity
        return await self.load_tracked(entity_type, entity_id)

    async def load_tracked(self, entity_type: Type[Entity], entity_id: int) -> Optional[Entity]:
        return await self.query(entity_type).where(entity_type.c.id == entity_id).first_or_default()

    async def load_untracked(self, entity_type: Type[Entity], entity_id: int) -> Optional[Entity]:
        return await self.query(entity_type).as_no_tracking().where(entity_type.c.id == entity_id).first_or_default()

    async def execute_query(self, query: EntityQuery) -> List[Entity]:
        return await self.from_statement(
            query.entity_type, query.statement(), tracking=query.tracking, includes=query.includes
        )

    async def from_statement(
        self,
        entity_type: Type[Entity],
        statement: Select,
        tracking: bool = True,
        includes: Sequence[str] = ()
    ) -> List[Entity]:
        """
        Exécute une requête SELECT sur la table d'un type d'entité.

        Args:
            entity_type: Type des entités retournées
            statement: Requête sélectionnant toutes les colonnes de la table
            tracking: Si True, les entités sont suivies par le contexte
            includes: Chemins de navigation à charger

        Returns:
            Liste d'entités
        """
        self._ensure_open()
        materializer = Materializer(self.tracker, tracking)
        tree = parse_includes(includes)

        async with self.database.engine.connect() as conn:
            result = await conn.execute(statement)
            entities = []
            seen = set()
            for row in result:
                entity = materializer.materialize(entity_type, row)
                if entity not in seen:
                    seen.add(entity)
                    entities.append(entity)
            await load_includes(conn, materializer, entities, tree)

        materializer.complete()
        return entities

    async def execute_scalar(self, statement: Select) -> Any:
        self._ensure_open()
        async with self.database.engine.connect() as conn:
            return await conn.scalar(statement)

    # Écriture

    async def save_changes(self) -> int:
        """
        Enregistre les ajouts, modifications et suppressions dans une transaction.

        Returns:
            Nombre de lignes écrites

        Raises:
            ConcurrencyConflictError: Si une mise à jour ou suppression n'affecte aucune ligne
            sqlalchemy.exc.IntegrityError: En cas de violation de contrainte
        """
        self._ensure_open()
        self.tracker.detect_changes()

        added = self.tracker.pending(EntityState.ADDED)
        modified = self.tracker.pending(EntityState.MODIFIED)
        deleted = self.tracker.pending(EntityState.DELETED)
        if not (added or modified or deleted):
            logger.debug("Aucune modification à enregistrer")
            return 0

        principals = self.tracker.pending_principals()
        inserted_ids: Dict[Entity, int] = {}
        written: Dict[Entity, Dict[str, Any]] = {}

        try:
            async with self.database.engine.begin() as conn:
                for entry in added:
                    table = entry.entity_type.__table__
                    values = self._row_values(entry, principals, inserted_ids)
                    if values.get("id") is None:
                        values.pop("id", None)
                    result = await conn.execute(insert(table).values(**values))
                    values["id"] = values.get("id", result.inserted_primary_key[0])
                    inserted_ids[entry.entity] = values["id"]
                    written[entry.entity] = values

                for entry in modified:
                    table = entry.entity_type.__table__
                    values = self._row_values(entry, principals, inserted_ids)
                    entity_id = values.pop("id")
                    result = await conn.execute(update(table).where(table.c.id == entity_id).values(**values))
                    if result.rowcount != 1:
                        raise ConcurrencyConflictError(entry.entity_type.__name__, entity_id, "UPDATE")
                    written[entry.entity] = values

                for entry in deleted:
                    table = entry.entity_type.__table__
                    entity_id = entry.original["id"]
                    result = await conn.execute(delete(table).where(table.c.id == entity_id))
                    if result.rowcount != 1:
                        raise ConcurrencyConflictError(entry.entity_type.__name__, entity_id, "DELETE")
        except ConcurrencyConflictError as e:
            logger.warning(f"Conflit de concurrence, transaction annulée: {str(e)}")
            raise
        except SQLAlchemyError as e:
            logger.error(f"Erreur lors de l'enregistrement, transaction annulée: {str(e)}")
            raise

        self._accept_changes(added, modified, deleted, written)

        count = len(added) + len(modified) + len(deleted)
        logger.info(
            f"{count} ligne(s) enregistrée(s): {len(added)} ajout(s), "
            f"{len(modified)} modification(s), {len(deleted)} suppression(s)"
        )
        return count

    commit = save_changes

    def _row_values(
        self,
        entry: EntityEntry,
        principals: Dict[Entity, Dict[str, Entity]],
        inserted_ids: Dict[Entity, int]
    ) -> Dict[str, Any]:
        values = entry.entity.to_dict()
        for foreign_key, principal in principals.get(entry.entity, {}).items():
            if principal in inserted_ids:
                values[foreign_key] = inserted_ids[principal]
        return values

    def _accept_changes(
        self,
        added: List[EntityEntry],
        modified: List[EntityEntry],
        deleted: List[EntityEntry],
        written: Dict[Entity, Dict[str, Any]]
    ) -> None:
        for entry in added + modified:
            for name, value in written[entry.entity].items():
                setattr(entry.entity, name, value)

        for entry in added:
            self.tracker.identify(entry.entity)

        # Navigations des nouvelles entités: référence retrouvée par la clé
        # étrangère parmi les entités suivies, puis navigation inverse
        for entry in added:
            entity = entry.entity
            for name, navigation in entity.__navigations__.items():
                if navigation.is_reference and getattr(entity, name) is None:
                    key = getattr(entity, navigation.foreign_key)
                    if key is not None:
                        setattr(entity, name, self.tracker.lookup(navigation.target, key))
                value = getattr(entity, name)
                if value:
                    set_navigation(entity, navigation, value)

        for entry in added + modified:
            entry.accept_changes()

        for entry in deleted:
            self.tracker.forget(entry.entity)

    def __repr__(self):
        return f"<FootballLeagueContext(tracked={len(self.tracker)}, closed={self._closed})>"
