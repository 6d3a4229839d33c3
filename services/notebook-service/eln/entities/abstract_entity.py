"""
Shared behaviour of experiments, database items and templates.

An entity instance is bound to a database session, the current user and
optionally one entity id. Listing state (filters, ordering, pagination) is
held on the instance and consumed by ``read_show``.
"""

from abc import ABC, abstractmethod
from datetime import datetime, time
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from sqlalchemy.orm import Session

from .. import filters
from ..checks import check_id, check_rw, check_visibility
from ..domain.entities import READ_ONLY, Access, EntityType, UserContext
from ..domain.exceptions import (
    IllegalActionException,
    ImproperActionException,
    ResourceNotFoundException,
)
from ..logging_config import get_logger
from ..metrics import track_entity_operation, track_permission_denied, track_show_rows
from ..models import Tag, TagLink, User, tables_for
from ..permissions import Permissions
from ..resources import Comments, Links, Revisions, Steps, Tags, Uploads
from ..services.team_groups import TeamGroups
from .query import EntityQuery, normalize_filter_column

logger = get_logger(__name__)

TITLE_PREVIEW_LENGTH = 60


class AbstractEntity(ABC):
    """
    Base class of the entity types.

    Args:
        db: Database session
        user: Current user
        entity_id: Id of the entity to act upon
    """

    type: EntityType = None
    page = ""

    def __init__(self, db: Session, user: UserContext, entity_id: Optional[int] = None):
        self.db = db
        self.user = user
        self.tables = tables_for(self.type)

        self.id: Optional[int] = None
        self.entity_data: Dict[str, Any] = {}
        self.bypass_permissions = False
        self.is_read_only = False

        # listing state
        self.filters: List[Tuple[str, Any]] = []
        self.id_filter: Optional[List[int]] = None
        self.title_filter = ""
        self.date_filter = ""
        self.body_filter = ""
        self.query_filter = ""
        self.order = "date"
        self.sort = "DESC"
        self.limit: Optional[int] = None
        self.offset: Optional[int] = None

        self.links = Links(self)
        self.steps = Steps(self)
        self.tags = Tags(self)
        self.uploads = Uploads(self)
        self.comments = Comments(self)
        self.revisions = Revisions(self)
        self.team_groups = TeamGroups(db, user)

        if entity_id is not None:
            self.set_id(entity_id)

    def set_id(self, entity_id: Any) -> None:
        """Bind the instance to another entity and forget the cached row."""
        checked = check_id(entity_id)
        if checked is None:
            raise IllegalActionException("The id parameter is not valid!")
        self.id = checked
        self.entity_data = {}

    @abstractmethod
    def create(self, tpl: Optional[int] = None) -> int:
        """Create an entity and return its id."""

    @abstractmethod
    def duplicate(self) -> int:
        """Copy the current entity and return the id of the copy."""

    @abstractmethod
    def destroy(self) -> None:
        """Delete the current entity and its attached records."""

    def toggle_lock(self) -> bool:
        """
        Lock or unlock the entity.

        Returns:
            The new locked state

        Raises:
            ImproperActionException: If the user cannot lock, did not lock
                the entity themselves, or the entity is timestamped
        """
        permissions = self.get_permissions()
        if not self.user.can_lock and not permissions.write:
            raise ImproperActionException("You don't have the rights to lock/unlock this.")

        locked = bool(self.entity_data["locked"])
        lockedby = self.entity_data.get("lockedby")
        if locked and lockedby != self.user.userid:
            locker = self.db.get(User, lockedby) if lockedby is not None else None
            if locker is None:
                raise ImproperActionException("Could not find the firstname of the locker!")
            raise ImproperActionException(
                f"This experiment was locked by {locker.firstname}. "
                "You don't have the rights to unlock this."
            )
        if locked and self.entity_data.get("timestamped"):
            raise ImproperActionException(
                "You cannot unlock or edit in any way a timestamped experiment."
            )

        row = self._get_row()
        row.locked = not locked
        row.lockedby = self.user.userid
        row.lockedwhen = datetime.utcnow()
        self.db.commit()
        self.entity_data = {}

        track_entity_operation(self.type.value, "lock")
        logger.info(
            "Entity lock toggled",
            entity_type=self.type.value,
            entity_id=self.id,
            locked=not locked,
            userid=self.user.userid,
        )
        return not locked

    def read_show(self, extended: bool = False) -> List[Dict[str, Any]]:
        """
        List the entities visible to the current user.

        Args:
            extended: Fetch every column and the tags of each row

        Returns:
            Rows ordered and paginated as configured on the instance
        """
        query = EntityQuery(self)
        stmt = query.show(full_select=extended, groups=self.team_groups.get_groups_from_user())
        items = [query.normalize(row) for row in self.db.execute(stmt).mappings()]
        if extended:
            self._attach_tags(items)
        self._decorate_rows(items)

        track_show_rows(self.type.value, len(items))
        logger.debug(
            "Entities listed",
            entity_type=self.type.value,
            count=len(items),
            order=self.order,
            sort=self.sort,
        )
        return items

    def read(self, get_tags: bool = True) -> Dict[str, Any]:
        """
        Read the current entity with every column.

        Raises:
            IllegalActionException: If no id is set or the user cannot read it
            ResourceNotFoundException: If the entity does not exist
        """
        if self.id is None:
            raise IllegalActionException("No id was set!")
        query = EntityQuery(self)
        row = self.db.execute(query.single(self.id)).mappings().first()
        if row is None:
            raise ResourceNotFoundException(self.type.value, self.id)
        item = query.normalize(row)
        if get_tags:
            self._attach_tags([item])
        self._decorate_rows([item])

        permissions = self.get_permissions(item)
        if not permissions.read:
            track_permission_denied(self.type.value, "read")
            raise IllegalActionException("User tried to access entity without permission.")
        return item

    def get_tags(self, items: List[Dict[str, Any]]) -> Dict[int, List[Dict[str, Any]]]:
        """
        Tags of several entities in one query.

        Returns:
            Mapping of entity id to its tags, ordered by tag id
        """
        ids = [item["id"] for item in items]
        if not ids:
            return {}
        rows = (
            self.db.query(TagLink.item_id, Tag.id, Tag.tag)
            .join(Tag, Tag.id == TagLink.tag_id)
            .filter(TagLink.item_type == self.type.value, TagLink.item_id.in_(ids))
            .distinct()
            .order_by(TagLink.item_id, Tag.id)
            .all()
        )
        tags: Dict[int, List[Dict[str, Any]]] = {}
        for row in rows:
            tags.setdefault(row.item_id, []).append({"tag_id": row.id, "tag": row.tag})
        return tags

    def update(self, title: str, date: str, body: str) -> None:
        """
        Update title, date and body.

        Raises:
            ImproperActionException: If the entity is locked or the body is too big
        """
        self.can_or_explode("write")
        if self.entity_data["locked"]:
            raise ImproperActionException("Cannot update a locked entity!")

        clean_body = filters.body(body)
        self.revisions.create(clean_body)
        row = self._get_row()
        row.title = filters.title(title)
        row.date = filters.kdate(date)
        row.body = clean_body
        self.db.commit()
        self.entity_data = {}

        track_entity_operation(self.type.value, "update")
        logger.info(
            "Entity updated",
            entity_type=self.type.value,
            entity_id=self.id,
            userid=self.user.userid,
        )

    def set_limit(self, num: int) -> None:
        """Fetch one row more than displayed to know if a next page exists."""
        self.limit = num + 1

    def set_offset(self, num: int) -> None:
        self.offset = num

    def update_permissions(self, rw: str, value: str) -> None:
        """
        Set the read or write visibility of the entity.

        Args:
            rw: "read" or "write"
            value: A scope keyword or a team group id
        """
        self.can_or_explode("write")
        value = check_visibility(value)
        groupid = check_id(value)
        if groupid is not None and not self.team_groups.exists(groupid):
            raise ImproperActionException(
                "This team group does not exist in your team.",
                details={"field": "value", "value": value},
            )
        column = "can" + check_rw(rw)
        row = self._get_row()
        setattr(row, column, value)
        self.db.commit()
        self.entity_data = {}

        track_entity_operation(self.type.value, "permissions")
        logger.info(
            "Entity permissions updated",
            entity_type=self.type.value,
            entity_id=self.id,
            column=column,
            value=value,
        )

    def get_can(self, rw: str) -> str:
        """Display name of the read or write visibility."""
        column = "can" + check_rw(rw)
        if not self.entity_data:
            self.populate()
        value = self.entity_data[column]
        groupid = check_id(value)
        if groupid is not None:
            return self.team_groups.read_name(groupid)
        return value.capitalize()

    def can_or_explode(self, rw: str) -> None:
        """
        Ensure the current user has the given access.

        Marks the instance read only when the user can read but not write.

        Raises:
            IllegalActionException: If the access is not granted
        """
        permissions = self.get_permissions()
        if permissions.read and not permissions.write:
            self.is_read_only = True
        if not permissions[rw]:
            track_permission_denied(self.type.value, rw)
            logger.warning(
                "Permission denied",
                entity_type=self.type.value,
                entity_id=self.id,
                rw=rw,
                userid=self.user.userid,
            )
            raise IllegalActionException("User tried to access entity without permission.")

    def get_permissions(self, item: Optional[Dict[str, Any]] = None) -> Access:
        """
        Access of the current user to an entity row.

        Args:
            item: Row to check; defaults to the current entity, read on demand
        """
        if self.bypass_permissions:
            return READ_ONLY
        if item is None:
            if not self.entity_data:
                self.populate()
            item = self.entity_data
        return self._resolve(Permissions(self.db, self.user, item))

    def get_autocomplete(self, term: str, source: str) -> List[str]:
        """
        Link candidates as 'id - category - title' strings.

        Args:
            term: Searched in titles
            source: "experiments" or "items"
        """
        if source == EntityType.EXPERIMENTS.value:
            items = self._get_exp_list(term)
        elif source == EntityType.ITEMS.value:
            items = self._get_db_list(term)
        else:
            raise ImproperActionException(
                f"Invalid autocomplete source: {source}", details={"field": "source"}
            )
        return [
            f"{item['id']} - {item['category']} - {item['title'][:TITLE_PREVIEW_LENGTH]}"
            for item in items
        ]

    def get_mention_list(self, term: str) -> List[Dict[str, str]]:
        """Items then experiments matching a term, as HTML anchors."""
        mentions = []
        for item in self._get_db_list(term):
            mentions.append(
                {
                    "name": f"<a href='database.php?mode=view&id={item['id']}'>"
                    f"[{item['category']}] {item['title']}</a>"
                }
            )
        for item in self._get_exp_list(term):
            mentions.append(
                {
                    "name": f"<a href='experiments.php?mode=view&id={item['id']}'>"
                    f"[Experiment] {item['title']}</a>"
                }
            )
        return mentions

    def update_category(self, category: int) -> None:
        """
        Change the status of an experiment or the type of an item.

        Raises:
            ImproperActionException: If the category is not one of the team's
        """
        self.can_or_explode("write")
        model = self.tables.category
        if model is None:
            raise ImproperActionException(f"{self.type.value} have no category")
        found = (
            self.db.query(model)
            .filter(model.id == category, model.team == self.user.team)
            .first()
        )
        if found is None:
            raise ImproperActionException("Invalid category", details={"category": category})
        self._get_row().category = category
        self.db.commit()
        self.entity_data = {}
        track_entity_operation(self.type.value, "category")

    def add_filter(self, column: str, value: Any) -> None:
        """Restrict the listing to rows where ``column`` equals ``value``."""
        if value is None:
            return
        self.filters.append((normalize_filter_column(column), value))

    def get_id_from_lastchange(self, userid: int, period: str) -> List[int]:
        """
        Ids of the user's entities modified during a period.

        Args:
            userid: Owner of the entities
            period: 'YYYYMMDD-YYYYMMDD', both days included; empty for all time
        """
        start, end = filters.parse_period(period)
        model = self.tables.entity
        rows = (
            self.db.query(model.id)
            .filter(
                model.userid == userid,
                model.lastchange >= datetime.combine(start, time.min),
                model.lastchange <= datetime.combine(end, time.max),
            )
            .order_by(model.id)
            .all()
        )
        return [row.id for row in rows]

    def populate(self) -> None:
        """Load the current entity into ``entity_data``."""
        if self.id is None:
            raise ImproperActionException("No id was set.")
        self.entity_data = self.read()

    def get_timestamp_info(self) -> Dict[str, Any]:
        return {}

    def _resolve(self, permissions: Permissions) -> Access:
        return permissions.for_exp_item()

    def _attach_tags(self, items: List[Dict[str, Any]]) -> None:
        tags = self.get_tags(items)
        for item in items:
            entity_tags = tags.get(item["id"], [])
            item["tags"] = "|".join(tag["tag"] for tag in entity_tags) or None
            item["tags_id"] = ",".join(str(tag["tag_id"]) for tag in entity_tags) or None

    def _decorate_rows(self, items: List[Dict[str, Any]]) -> None:
        """Hook for per-type columns computed after the query."""

    def _get_row(self):
        model = self.tables.entity
        row = self.db.get(model, self.id)
        if row is None:
            raise ResourceNotFoundException(self.type.value, self.id)
        return row

    def _get_exp_list(self, term: str) -> List[Dict[str, Any]]:
        from .experiments import Experiments

        entity = Experiments(self.db, self.user)
        entity.title_filter = filters.sanitize_term(term)
        return entity.read_show()

    def _get_db_list(self, term: str) -> List[Dict[str, Any]]:
        from .items import Items

        entity = Items(self.db, self.user)
        entity.title_filter = filters.sanitize_term(term)
        return entity.read_show()

    def _copy_children(self, new_id: int) -> None:
        """Copy tags, steps and links of the current entity to ``new_id``."""
        self.tags.copy_to(new_id)
        self.steps.copy_to(new_id)
        self.links.copy_to(new_id)

    def _destroy_children(self) -> None:
        self.tags.destroy_all()
        self.steps.destroy_all()
        self.links.destroy_all()
        self.comments.destroy_all()
        self.uploads.destroy_all()
        self.revisions.destroy_all()

    def _check_destroyable(self) -> None:
        self.can_or_explode("write")
        if self.entity_data["locked"]:
            raise ImproperActionException("Cannot delete a locked entity!")

    @staticmethod
    def _new_elabid() -> str:
        """Unique, human readable identifier of a new entity."""
        return datetime.utcnow().strftime("%Y%m%d") + "-" + uuid4().hex[:40]
