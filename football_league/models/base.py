"""
Base de définition des entités.
Contient les métadonnées SQLAlchemy, la classe Entity et la description
des propriétés de navigation entre entités.
"""
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional, Type

from sqlalchemy import MetaData, Table

from football_league.exceptions import UnknownNavigationError

# Métadonnées partagées par toutes les tables
metadata = MetaData()

# Registre des entités par nom de classe, alimenté par Entity.__init_subclass__
_registry: Dict[str, Type["Entity"]] = {}

REFERENCE = "reference"
COLLECTION = "collection"
DEPENDENT = "dependent"


class Navigation:
    """
    Propriété de navigation d'une entité vers une entité liée.

    Trois formes:
    - reference: la clé étrangère est portée par l'entité propriétaire (Team.league)
    - collection: la clé étrangère est portée par les entités cibles (League.teams)
    - dependent: comme collection mais au plus une cible (Team.coach)
    """

    def __init__(self, kind: str, target: str, foreign_key: str, inverse: Optional[str] = None):
        self.kind = kind
        self.target_name = target
        self.foreign_key = foreign_key
        self.inverse = inverse
        self.name: Optional[str] = None
        self.owner: Optional[Type["Entity"]] = None

    @property
    def target(self) -> Type["Entity"]:
        return _registry[self.target_name]

    @property
    def is_reference(self) -> bool:
        return self.kind == REFERENCE

    @property
    def is_collection(self) -> bool:
        return self.kind == COLLECTION

    @property
    def inverse_navigation(self) -> Optional["Navigation"]:
        if self.inverse is None:
            return None
        return self.target.__navigations__[self.inverse]

    def __repr__(self):
        return f"<Navigation({self.owner.__name__}.{self.name} -> {self.target_name}, kind='{self.kind}')>"


def reference(target: str, foreign_key: str, inverse: Optional[str] = None) -> Navigation:
    return Navigation(REFERENCE, target, foreign_key, inverse)


def collection(target: str, foreign_key: str, inverse: Optional[str] = None) -> Navigation:
    return Navigation(COLLECTION, target, foreign_key, inverse)


def dependent(target: str, foreign_key: str, inverse: Optional[str] = None) -> Navigation:
    return Navigation(DEPENDENT, target, foreign_key, inverse)


class _TableColumns:
    """Accès aux colonnes de la table d'une entité: Team.c.name"""

    def __get__(self, instance, owner):
        return owner.__table__.c


class ModelOperationsMixin:
    """
    Mixin ajoutant les opérations communes sur les colonnes de la table.
    """
    __table__: ClassVar[Table]

    @classmethod
    def column_names(cls) -> List[str]:
        """Noms des colonnes de la table, identifiant compris."""
        return [c.key for c in cls.__table__.columns]

    @classmethod
    def scalar_names(cls) -> List[str]:
        """Noms des colonnes hors identifiant."""
        return [name for name in cls.column_names() if name != "id"]

    def to_dict(self) -> Dict[str, Any]:
        """
        Convertit l'instance en dictionnaire.

        Returns:
            Dictionnaire des attributs (sans les navigations)
        """
        return {c.key: getattr(self, c.key) for c in self.__table__.columns}


@dataclass(eq=False, repr=False)
class Entity(ModelOperationsMixin):
    """
    Classe de base des entités.

    Les entités sont de simples objets en mémoire; leur persistance est
    entièrement gérée par FootballLeagueContext. L'identifiant reste None
    jusqu'à l'insertion.
    """
    __table__: ClassVar[Table]
    __navigations__: ClassVar[Dict[str, Navigation]] = {}

    c = _TableColumns()

    id: Optional[int] = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        _registry[cls.__name__] = cls
        for name, navigation in cls.__navigations__.items():
            navigation.name = name
            navigation.owner = cls

    @classmethod
    def navigation(cls, name: str) -> Navigation:
        try:
            return cls.__navigations__[name]
        except KeyError:
            raise UnknownNavigationError(f"{cls.__name__} n'a pas de navigation '{name}'") from None

    def related(self, name: Optional[str] = None) -> List["Entity"]:
        """
        Entités directement atteignables par les navigations chargées.

        Args:
            name: Limite le parcours à une navigation (None = toutes)
        """
        if name is None:
            navigations = self.__navigations__.items()
        else:
            navigations = [(name, self.navigation(name))]

        result = []
        for name, navigation in navigations:
            value = getattr(self, name)
            if navigation.is_collection:
                result.extend(value or [])
            elif value is not None:
                result.append(value)
        return result
