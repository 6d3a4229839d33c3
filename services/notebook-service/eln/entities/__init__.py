"""Experiments, database items and templates."""

from typing import Optional, Type

from sqlalchemy.orm import Session

from ..domain.entities import EntityType, UserContext
from .abstract_entity import AbstractEntity
from .experiments import Experiments
from .items import Items
from .templates import Templates

ENTITY_CLASSES = {
    EntityType.EXPERIMENTS: Experiments,
    EntityType.ITEMS: Items,
    EntityType.TEMPLATES: Templates,
}


def get_entity_class(entity_type: EntityType) -> Type[AbstractEntity]:
    return ENTITY_CLASSES[EntityType(entity_type)]


def get_entity(
    entity_type: EntityType, db: Session, user: UserContext, entity_id: Optional[int] = None
) -> AbstractEntity:
    """Instantiate the entity class of a type."""
    return get_entity_class(entity_type)(db, user, entity_id)


__all__ = [
    "AbstractEntity",
    "ENTITY_CLASSES",
    "Experiments",
    "Items",
    "Templates",
    "get_entity",
    "get_entity_class",
]
