"""
Entity categories: statuses for experiments and item types for items.

Both are team-scoped records with a name, a color and an ordering. A
category cannot be deleted while entities still use it.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from .. import filters, models
from ..checks import check_color
from ..domain.entities import UserContext
from ..domain.exceptions import ImproperActionException, ResourceNotFoundException
from ..logging_config import get_logger
from ..metrics import track_admin_operation
from ..permissions import require_admin

logger = get_logger(__name__)


class AbstractCategory(ABC):
    """Shared behaviour of statuses and item types."""

    model: Any = None
    entity_model: Any = None
    resource = ""
    in_use_message = ""

    def __init__(self, db: Session, user: UserContext):
        self.db = db
        self.user = user

    def read_all(self) -> List[Dict]:
        """Categories of the team, in display order."""
        rows = (
            self.db.query(self.model)
            .filter(self.model.team == self.user.team)
            .order_by(self.model.ordering.is_(None), self.model.ordering, self.model.id)
            .all()
        )
        return [self._to_dict(row) for row in rows]

    def read(self, category_id: int) -> Dict:
        return self._to_dict(self._get(category_id))

    def exists(self, category_id: int) -> bool:
        return self._find(category_id) is not None

    def destroy(self, category_id: int) -> None:
        """
        Delete a category.

        Raises:
            ImproperActionException: If entities still use it
        """
        require_admin(self.user)
        category = self._get(category_id)
        in_use = (
            self.db.query(self.entity_model)
            .filter(self.entity_model.category == category_id)
            .count()
        )
        if in_use:
            raise ImproperActionException(
                self.in_use_message, details={"id": category_id, "entities": in_use}
            )
        self._check_destroyable(category)
        self.db.delete(category)
        self.db.commit()

        track_admin_operation(self.resource, "destroy")
        logger.info("Category destroyed", resource=self.resource, id=category_id)

    def update_ordering(self, ids: List[int]) -> None:
        """Store the display order given as a list of ids."""
        require_admin(self.user)
        for position, category_id in enumerate(ids, start=1):
            self._get(category_id).ordering = position
        self.db.commit()
        track_admin_operation(self.resource, "ordering")

    def _check_destroyable(self, category) -> None:
        pass

    def _clean_name(self, name: str) -> str:
        if not name or not name.strip():
            raise ImproperActionException("Name cannot be empty")
        return filters.title(name)

    def _find(self, category_id: int):
        return (
            self.db.query(self.model)
            .filter(self.model.id == category_id, self.model.team == self.user.team)
            .first()
        )

    def _get(self, category_id: int):
        category = self._find(category_id)
        if category is None:
            raise ResourceNotFoundException(self.resource, category_id)
        return category

    @abstractmethod
    def _to_dict(self, row) -> Dict:
        """Serialize one category row."""


class Status(AbstractCategory):
    """Statuses of experiments."""

    model = models.Status
    entity_model = models.Experiment
    resource = "status"
    in_use_message = "Remove all experiments with this status before deleting this status."

    def create(
        self,
        name: str,
        color: str,
        is_timestampable: bool = True,
        is_default: bool = False,
    ) -> int:
        """
        Create a status.

        Returns:
            Id of the new status
        """
        require_admin(self.user)
        status = self.model(
            team=self.user.team,
            name=self._clean_name(name),
            color=check_color(color),
            is_timestampable=is_timestampable,
            is_default=False,
        )
        self.db.add(status)
        self.db.flush()
        if is_default:
            self._set_default(status)
        self.db.commit()

        track_admin_operation(self.resource, "create")
        logger.info("Status created", id=status.id, team=self.user.team)
        return status.id

    def update(
        self,
        status_id: int,
        name: str,
        color: str,
        is_timestampable: bool,
        is_default: bool,
    ) -> None:
        require_admin(self.user)
        status = self._get(status_id)
        status.name = self._clean_name(name)
        status.color = check_color(color)
        status.is_timestampable = is_timestampable
        if is_default:
            self._set_default(status)
        else:
            status.is_default = False
        self.db.commit()
        track_admin_operation(self.resource, "update")

    def read_default(self) -> Optional[Dict]:
        """
        The status given to new experiments.

        Falls back to the first status of the team when none is flagged.
        """
        row = (
            self.db.query(self.model)
            .filter(self.model.team == self.user.team, self.model.is_default.is_(True))
            .first()
        )
        if row is not None:
            return self._to_dict(row)
        statuses = self.read_all()
        return statuses[0] if statuses else None

    def _set_default(self, status) -> None:
        # only one default status per team
        self.db.query(self.model).filter(
            self.model.team == self.user.team, self.model.id != status.id
        ).update({"is_default": False}, synchronize_session=False)
        status.is_default = True

    def _check_destroyable(self, category) -> None:
        remaining = self.db.query(self.model).filter(self.model.team == self.user.team).count()
        if remaining <= 1:
            raise ImproperActionException("You cannot delete the last status of the team.")

    def _to_dict(self, row) -> Dict:
        return {
            "id": row.id,
            "name": row.name,
            "color": row.color,
            "is_timestampable": row.is_timestampable,
            "is_default": row.is_default,
            "ordering": row.ordering,
        }


class ItemsTypes(AbstractCategory):
    """Types of database items, each with a body template."""

    model = models.ItemsType
    entity_model = models.Item
    resource = "items_types"
    in_use_message = "Remove all database items with this type before deleting this type."

    def create(self, name: str, color: str, bookable: bool = False, template: str = "") -> int:
        """
        Create an item type.

        Args:
            name: Display name
            color: Hex color
            bookable: Items of this type can be booked in the scheduler
            template: Body given to new items of this type

        Returns:
            Id of the new item type
        """
        require_admin(self.user)
        items_type = self.model(
            team=self.user.team,
            name=self._clean_name(name),
            color=check_color(color),
            bookable=bookable,
            template=filters.body(template),
        )
        self.db.add(items_type)
        self.db.commit()
        self.db.refresh(items_type)

        track_admin_operation(self.resource, "create")
        logger.info("Items type created", id=items_type.id, team=self.user.team)
        return items_type.id

    def update(
        self,
        items_type_id: int,
        name: str,
        color: str,
        bookable: bool,
        template: str,
    ) -> None:
        require_admin(self.user)
        items_type = self._get(items_type_id)
        items_type.name = self._clean_name(name)
        items_type.color = check_color(color)
        items_type.bookable = bookable
        items_type.template = filters.body(template)
        self.db.commit()
        track_admin_operation(self.resource, "update")

    def read_template(self, items_type_id: int) -> str:
        return self._get(items_type_id).template or ""

    def _to_dict(self, row) -> Dict:
        return {
            "id": row.id,
            "name": row.name,
            "color": row.color,
            "bookable": row.bookable,
            "template": row.template or "",
            "ordering": row.ordering,
        }
