"""
Base class of the records attached to an entity.
"""

from typing import TYPE_CHECKING, Any

from ..domain.exceptions import IllegalActionException, ImproperActionException

if TYPE_CHECKING:
    from ..entities.abstract_entity import AbstractEntity


class EntityResource:
    """
    Records owned by one entity (steps, links, comments...).

    Permission checks are delegated to the parent entity, so a resource
    always acts on behalf of the entity's current user.
    """

    # attribute of EntityTables holding the ORM class of the resource
    table_attr = ""

    def __init__(self, entity: "AbstractEntity"):
        self.entity = entity

    @property
    def db(self):
        return self.entity.db

    @property
    def user(self):
        return self.entity.user

    @property
    def model(self) -> Any:
        model = getattr(self.entity.tables, self.table_attr)
        if model is None:
            raise ImproperActionException(
                f"{self.entity.type.value} have no {self.table_attr}",
                details={"entity_type": self.entity.type.value},
            )
        return model

    def _require_id(self) -> int:
        if self.entity.id is None:
            raise IllegalActionException("No id was set!")
        return self.entity.id
