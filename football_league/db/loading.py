"""
Matérialisation des lignes en entités et chargement groupé des inclusions.

Toutes les requêtes d'un chargement sont exécutées avant de toucher au
ChangeTracker ou aux navigations: une annulation en cours de route laisse
le contexte dans son état initial.
"""
import logging
from typing import Any, Dict, List, Sequence, Tuple, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncConnection

from football_league.db.tracking import ChangeTracker
from football_league.models import Entity, Navigation

logger = logging.getLogger(__name__)

IncludeTree = Dict[str, "IncludeTree"]


def parse_includes(paths: Sequence[str]) -> IncludeTree:
    """
    Convertit des chemins d'inclusion en arbre.

    Args:
        paths: Chemins pointés, ex: ["teams", "away_matches.home_team"]

    Returns:
        Arbre {navigation: sous-arbre}
    """
    tree: IncludeTree = {}
    for path in paths:
        node = tree
        for name in path.split("."):
            node = node.setdefault(name.strip(), {})
    return tree


class Materializer:
    """
    Construit les entités à partir des lignes d'une requête.

    En mode suivi, une identité déjà suivie est résolue vers l'instance
    existante (ses modifications en attente sont conservées). Dans tous les
    cas une identité donne une seule instance par requête.
    """

    def __init__(self, tracker: ChangeTracker, tracking: bool):
        self.tracker = tracker
        self.tracking = tracking
        self._seen: Dict[Tuple[Type[Entity], int], Entity] = {}
        self._created: List[Entity] = []
        self._assignments: List[Tuple[Entity, Navigation, Any]] = []

    def materialize(self, entity_type: Type[Entity], row) -> Entity:
        values = dict(row._mapping)
        key = (entity_type, values["id"])
        if key in self._seen:
            return self._seen[key]

        entity = self.tracker.lookup(*key) if self.tracking else None
        if entity is None:
            entity = entity_type(**values)
            self._created.append(entity)

        self._seen[key] = entity
        return entity

    def assign(self, entity: Entity, navigation: Navigation, value: Any) -> None:
        self._assignments.append((entity, navigation, value))

    def complete(self) -> None:
        """Applique les navigations chargées et enregistre les nouvelles entités suivies."""
        for entity, navigation, value in self._assignments:
            set_navigation(entity, navigation, value)

        if self.tracking:
            for entity in self._created:
                self.tracker.track_unchanged(entity)


def set_navigation(entity: Entity, navigation: Navigation, value: Any) -> None:
    """
    Affecte une navigation chargée et renseigne la navigation inverse.

    Les collections sont fusionnées avec les éléments déjà présents.
    """
    inverse = navigation.inverse_navigation

    if navigation.is_collection:
        current = getattr(entity, navigation.name)
        merged = list(current) + [item for item in value if item not in current]
        setattr(entity, navigation.name, merged)
        for item in value:
            if inverse is not None:
                setattr(item, inverse.name, entity)
        return

    if value is None:
        return

    setattr(entity, navigation.name, value)
    if inverse is None:
        return
    if inverse.is_collection:
        items = getattr(value, inverse.name)
        if entity not in items:
            items.append(entity)
    else:
        setattr(value, inverse.name, entity)


async def load_includes(
    conn: AsyncConnection,
    materializer: Materializer,
    entities: List[Entity],
    tree: IncludeTree
) -> None:
    """
    Charge les navigations demandées pour un lot d'entités.

    Une requête par navigation et par niveau (IN sur les clés du lot),
    jamais une requête par entité.
    """
    if not entities or not tree:
        return

    entity_type = type(entities[0])
    for name, subtree in tree.items():
        navigation = entity_type.navigation(name)
        related = await _load_navigation(conn, materializer, entities, navigation)
        await load_includes(conn, materializer, related, subtree)


async def _load_navigation(
    conn: AsyncConnection,
    materializer: Materializer,
    entities: List[Entity],
    navigation: Navigation
) -> List[Entity]:
    target = navigation.target
    table = target.__table__

    if navigation.is_reference:
        keys = {getattr(entity, navigation.foreign_key) for entity in entities}
        keys.discard(None)
        if not keys:
            return []
        statement = select(table).where(table.c.id.in_(keys)).order_by(table.c.id)
        result = await conn.execute(statement)
        by_id = {}
        for row in result:
            related = materializer.materialize(target, row)
            by_id[related.id] = related
        for entity in entities:
            materializer.assign(entity, navigation, by_id.get(getattr(entity, navigation.foreign_key)))
        return list(by_id.values())

    keys = {entity.id for entity in entities if entity.id is not None}
    if not keys:
        return []
    foreign_key = table.c[navigation.foreign_key]
    statement = select(table).where(foreign_key.in_(keys)).order_by(table.c.id)
    result = await conn.execute(statement)

    grouped: Dict[int, List[Entity]] = {}
    loaded = []
    for row in result:
        related = materializer.materialize(target, row)
        grouped.setdefault(row._mapping[navigation.foreign_key], []).append(related)
        loaded.append(related)

    for entity in entities:
        children = grouped.get(entity.id, [])
        if navigation.is_collection:
            materializer.assign(entity, navigation, children)
        else:
            materializer.assign(entity, navigation, children[0] if children else None)

    logger.debug(
        f"Inclusion {navigation.owner.__name__}.{navigation.name}: "
        f"{len(loaded)} ligne(s) pour {len(entities)} entité(s)"
    )
    return loaded
