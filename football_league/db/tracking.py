"""
Suivi des modifications des entités d'un contexte.

Le ChangeTracker conserve, pour chaque entité suivie, son état et une copie
des valeurs de colonnes prise lorsqu'elle est devenue propre. La détection
des modifications compare les valeurs courantes à cette copie.
"""
import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Type

from football_league.exceptions import IdentityConflictError, IdentityModifiedError
from football_league.models import TABLE_ORDER, Entity

logger = logging.getLogger(__name__)

IdentityKey = Tuple[Type[Entity], int]


class EntityState(Enum):
    """États d'une entité vis-à-vis du contexte"""
    DETACHED = "Detached"
    UNCHANGED = "Unchanged"
    ADDED = "Added"
    MODIFIED = "Modified"
    DELETED = "Deleted"


class EntityEntry:
    """Entrée du suivi: une entité, son état et ses valeurs d'origine."""

    def __init__(self, entity: Entity, state: EntityState):
        self.entity = entity
        self.state = state
        self.original: Dict[str, Any] = {}
        # Marquée modifiée explicitement (update), sans comparaison de valeurs
        self.forced = False
        if state is not EntityState.ADDED:
            self.original = entity.to_dict()

    @property
    def entity_type(self) -> Type[Entity]:
        return type(self.entity)

    @property
    def key(self) -> Optional[IdentityKey]:
        entity_id = self.original.get("id", self.entity.id)
        if entity_id is None:
            return None
        return (self.entity_type, entity_id)

    def changed_columns(self) -> List[str]:
        current = self.entity.to_dict()
        return [name for name, value in current.items() if self.original.get(name) != value]

    def detect_changes(self) -> None:
        if self.state in (EntityState.ADDED, EntityState.DELETED):
            return

        changed = self.changed_columns()
        if "id" in changed:
            raise IdentityModifiedError(
                f"L'identifiant de {self.entity_type.__name__} {{id: {self.original.get('id')}}} "
                f"ne peut pas être modifié"
            )

        # Une entité modifiée le reste jusqu'au prochain enregistrement
        if changed or self.forced:
            self.state = EntityState.MODIFIED

    def accept_changes(self) -> None:
        """Après un enregistrement réussi: l'entité redevient propre."""
        self.state = EntityState.UNCHANGED
        self.forced = False
        self.original = self.entity.to_dict()

    def __str__(self):
        return f"{self.entity_type.__name__} {{id: {self.entity.id}}} {self.state.value}"

    def __repr__(self):
        return f"<EntityEntry(entity={self.entity!r}, state='{self.state.value}')>"


class ChangeTracker:
    """
    Ensemble de suivi d'un contexte.

    Indexé par instance (pour l'état) et par (type, identifiant) pour
    garantir qu'une identité correspond à une seule instance suivie.
    """

    def __init__(self):
        self._entries: Dict[Entity, EntityEntry] = {}
        self._identity_map: Dict[IdentityKey, Entity] = {}
        # Entités supprimées par un enregistrement: jamais suivies à nouveau
        self._removed: Set[Entity] = set()

    def __len__(self):
        return len(self._entries)

    def entry(self, entity: Entity) -> Optional[EntityEntry]:
        return self._entries.get(entity)

    def state_of(self, entity: Entity) -> EntityState:
        entry = self._entries.get(entity)
        return entry.state if entry else EntityState.DETACHED

    def lookup(self, entity_type: Type[Entity], entity_id: int) -> Optional[Entity]:
        return self._identity_map.get((entity_type, entity_id))

    def _check_identity(self, entity: Entity) -> None:
        if entity.id is None:
            return
        existing = self._identity_map.get((type(entity), entity.id))
        if existing is not None and existing is not entity:
            raise IdentityConflictError(
                f"Une autre instance de {type(entity).__name__} {{id: {entity.id}}} est déjà suivie"
            )

    def _register(self, entity: Entity, state: EntityState) -> EntityEntry:
        self._check_identity(entity)
        entry = EntityEntry(entity, state)
        self._entries[entity] = entry
        if entity.id is not None:
            self._identity_map[(type(entity), entity.id)] = entity
        return entry

    def track_unchanged(self, entity: Entity) -> EntityEntry:
        return self._register(entity, EntityState.UNCHANGED)

    def track_added(self, entity: Entity) -> EntityEntry:
        return self._register(entity, EntityState.ADDED)

    def track_modified(self, entity: Entity) -> EntityEntry:
        entry = self._entries.get(entity)
        if entry is None:
            entry = self._register(entity, EntityState.MODIFIED)
        elif entry.state is EntityState.ADDED:
            return entry
        entry.state = EntityState.MODIFIED
        entry.forced = True
        return entry

    def mark_deleted(self, entity: Entity) -> Optional[EntityEntry]:
        entry = self._entries.get(entity)
        if entry is not None and entry.state is EntityState.ADDED:
            # Jamais inséré: il suffit de l'oublier
            self.detach(entity)
            return None
        if entry is None:
            entry = self._register(entity, EntityState.DELETED)
        entry.state = EntityState.DELETED
        return entry

    def detach(self, entity: Entity) -> None:
        entry = self._entries.pop(entity, None)
        if entry is not None and entry.key is not None:
            self._identity_map.pop(entry.key, None)

    def forget(self, entity: Entity) -> None:
        """
        Détache une entité supprimée en base et la retire des navigations
        des entités suivies (collections inverses, références et dépendants).
        """
        self.detach(entity)
        self._removed.add(entity)
        for other in self._entries:
            for name, navigation in other.__navigations__.items():
                value = getattr(other, name)
                if navigation.is_collection:
                    if value and entity in value:
                        setattr(other, name, [item for item in value if item is not entity])
                elif value is entity:
                    setattr(other, name, None)

    def identify(self, entity: Entity) -> None:
        """Enregistre l'identité d'une entité nouvellement insérée."""
        self._identity_map[(type(entity), entity.id)] = entity

    def entries(self) -> List[EntityEntry]:
        return list(self._entries.values())

    def attach_graph(self, roots: Iterable[Entity], keyed_state: EntityState) -> List[Entity]:
        """
        Suit les entités non suivies atteignables depuis les racines.

        Args:
            roots: Entités de départ (déjà suivies)
            keyed_state: État donné aux entités découvertes qui ont déjà un
                identifiant; celles sans identifiant sont ajoutées

        Returns:
            Entités nouvellement suivies
        """
        discovered = []
        pending = list(roots)
        while pending:
            entity = pending.pop()
            for related in entity.related():
                if related in self._entries or related in self._removed:
                    continue
                if related.id is None:
                    self.track_added(related)
                elif keyed_state is EntityState.MODIFIED:
                    self.track_modified(related)
                else:
                    self.track_unchanged(related)
                discovered.append(related)
                pending.append(related)
        return discovered

    def discover(self) -> List[Entity]:
        """Suit les entités non suivies atteignables depuis les entités suivies."""
        roots = [entity for entity, entry in self._entries.items() if entry.state is not EntityState.DELETED]
        discovered = self.attach_graph(roots, EntityState.UNCHANGED)
        if discovered:
            logger.debug(f"{len(discovered)} entité(s) découverte(s) par les navigations")
        return discovered

    def links(self) -> Iterable[Tuple[EntityEntry, str, Entity]]:
        """
        Liens (entrée porteuse de la clé, clé étrangère, entité principale)
        exprimés par les navigations des entités suivies.

        Une clé étrangère modifiée directement l'emporte sur la navigation:
        le lien correspondant n'est pas retourné.
        """
        for entity, entry in list(self._entries.items()):
            if entry.state is EntityState.DELETED:
                continue
            for name, navigation in entity.__navigations__.items():
                for target in entity.related(name):
                    if navigation.is_reference:
                        holder, principal = entity, target
                    else:
                        holder, principal = target, entity
                    holder_entry = self._entries.get(holder)
                    if holder_entry is None or holder_entry.state is EntityState.DELETED:
                        continue
                    current = getattr(holder, navigation.foreign_key)
                    if holder_entry.original and holder_entry.original.get(navigation.foreign_key) != current:
                        continue
                    yield holder_entry, navigation.foreign_key, principal

    def fix_up_foreign_keys(self) -> None:
        """
        Aligne les clés étrangères sur les navigations dont la cible a un identifiant.

        Une entité propre dont la cible n'est pas encore insérée passe en MODIFIED.
        """
        for holder_entry, foreign_key, principal in self.links():
            if principal.id is None:
                if holder_entry.state is EntityState.UNCHANGED:
                    holder_entry.state = EntityState.MODIFIED
            elif getattr(holder_entry.entity, foreign_key) != principal.id:
                setattr(holder_entry.entity, foreign_key, principal.id)

    def pending_principals(self) -> Dict[Entity, Dict[str, Entity]]:
        """Clés étrangères dont l'entité principale n'a pas encore d'identifiant."""
        result: Dict[Entity, Dict[str, Entity]] = {}
        for holder_entry, foreign_key, principal in self.links():
            if principal.id is None:
                result.setdefault(holder_entry.entity, {})[foreign_key] = principal
        return result

    def detect_changes(self) -> None:
        self.discover()
        self.fix_up_foreign_keys()
        for entry in self._entries.values():
            entry.detect_changes()

    def pending(self, state: EntityState) -> List[EntityEntry]:
        """Entrées dans l'état donné, dans l'ordre des dépendances entre tables."""
        selected = [entry for entry in self._entries.values() if entry.state is state]
        order = {name: index for index, name in enumerate(TABLE_ORDER)}
        selected.sort(key=lambda entry: order[entry.entity_type.__table__.name])
        if state is EntityState.DELETED:
            selected.reverse()
        return selected

    def clear(self) -> None:
        self._entries.clear()
        self._identity_map.clear()
        self._removed.clear()
