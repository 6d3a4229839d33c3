"""
Experiment templates.

A template belongs to a user and can be shared with the team. It has a
name instead of a title, no date, no category and is never locked.
"""

from typing import Any, Dict, List, Optional

from .. import filters
from ..config import settings
from ..domain.entities import Access, EntityType
from ..domain.exceptions import (
    IllegalActionException,
    ImproperActionException,
    ResourceNotFoundException,
)
from ..logging_config import get_logger
from ..metrics import track_entity_operation, track_permission_denied
from ..models import ExperimentTemplate
from ..permissions import Permissions
from .abstract_entity import AbstractEntity

logger = get_logger(__name__)


class Templates(AbstractEntity):
    type = EntityType.TEMPLATES
    page = "ucp"

    def create(self, tpl: Optional[int] = None, name: str = "", body: str = "") -> int:
        """
        Create a template owned by the current user.

        Args:
            tpl: Unused; templates are not created from templates
            name: Name of the template
            body: Body given to experiments created from it
        """
        if not name or not name.strip():
            raise ImproperActionException("Name cannot be empty")
        template = ExperimentTemplate(
            team=self.user.team,
            userid=self.user.userid,
            name=filters.title(name),
            body=filters.body(body),
            canread=settings.DEFAULT_CANREAD,
            canwrite=settings.DEFAULT_CANWRITE,
        )
        self.db.add(template)
        self.db.commit()
        self.db.refresh(template)

        track_entity_operation(self.type.value, "create")
        logger.info("Template created", entity_id=template.id, userid=self.user.userid)
        return template.id

    def read(self, get_tags: bool = True) -> Dict[str, Any]:
        if self.id is None:
            raise IllegalActionException("No id was set!")
        row = self.db.get(ExperimentTemplate, self.id)
        if row is None:
            raise ResourceNotFoundException(self.type.value, self.id)
        item = self._to_dict(row)
        if get_tags:
            self._attach_tags([item])

        if not self.get_permissions(item).read:
            track_permission_denied(self.type.value, "read")
            raise IllegalActionException("User tried to access entity without permission.")
        return item

    def read_all(self) -> List[Dict[str, Any]]:
        """Templates of the user followed by those shared by the team."""
        rows = (
            self.db.query(ExperimentTemplate)
            .filter(ExperimentTemplate.team == self.user.team)
            .order_by(
                ExperimentTemplate.userid != self.user.userid,
                ExperimentTemplate.ordering.is_(None),
                ExperimentTemplate.ordering,
                ExperimentTemplate.name,
            )
            .all()
        )
        items = [self._to_dict(row) for row in rows]
        items = [item for item in items if self.get_permissions(item).read]
        self._attach_tags(items)
        return items

    def update(self, title: str, date: str, body: str) -> None:
        """Rename the template and replace its body; templates have no date."""
        self.can_or_explode("write")
        row = self._get_row()
        row.name = filters.title(title)
        row.body = filters.body(body)
        self.db.commit()
        self.entity_data = {}
        track_entity_operation(self.type.value, "update")

    def toggle_lock(self) -> bool:
        return False

    def duplicate(self) -> int:
        """Copy a readable template into the current user's templates."""
        self.can_or_explode("read")
        source = self.entity_data
        copy = ExperimentTemplate(
            team=self.user.team,
            userid=self.user.userid,
            name=source["name"],
            body=source["body"],
            canread=settings.DEFAULT_CANREAD,
            canwrite=settings.DEFAULT_CANWRITE,
        )
        self.db.add(copy)
        self.db.flush()
        self.tags.copy_to(copy.id)
        self.db.commit()

        track_entity_operation(self.type.value, "duplicate")
        logger.info("Template duplicated", entity_id=self.id, new_id=copy.id)
        return copy.id

    def destroy(self) -> None:
        self.can_or_explode("write")
        self.tags.destroy_all()
        self.db.delete(self._get_row())
        self.db.commit()

        track_entity_operation(self.type.value, "destroy")
        logger.info("Template destroyed", entity_id=self.id, userid=self.user.userid)

    def update_ordering(self, ids: List[int]) -> None:
        """Store the display order of the user's templates."""
        for position, template_id in enumerate(ids, start=1):
            row = self.db.get(ExperimentTemplate, template_id)
            if row is None or row.userid != self.user.userid:
                raise IllegalActionException("You can only reorder your own templates.")
            row.ordering = position
        self.db.commit()

    def _resolve(self, permissions: Permissions) -> Access:
        return permissions.for_templates()

    @staticmethod
    def _to_dict(row: ExperimentTemplate) -> Dict[str, Any]:
        return {
            "id": row.id,
            "team": row.team,
            "userid": row.userid,
            "name": row.name,
            "title": row.name,
            "body": row.body,
            "canread": row.canread,
            "canwrite": row.canwrite,
            "ordering": row.ordering,
            "locked": False,
            "lastchange": row.lastchange,
        }
