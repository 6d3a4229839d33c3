"""Database items: the team's shared resources (samples, reagents, instruments)."""

from typing import Any, Dict, List, Optional

from .. import filters
from ..config import settings
from ..domain.entities import EntityType
from ..domain.exceptions import ImproperActionException
from ..logging_config import get_logger
from ..metrics import track_entity_operation
from ..models import ENTITY_TABLES, Item, TeamEvent
from ..services.categories import ItemsTypes
from .abstract_entity import AbstractEntity

logger = get_logger(__name__)


class Items(AbstractEntity):
    type = EntityType.ITEMS
    page = "database"

    def create(self, tpl: Optional[int] = None) -> int:
        """
        Create an item of the given type, with the type's template as body.

        Args:
            tpl: Id of the item type
        """
        items_types = ItemsTypes(self.db, self.user)
        if tpl is None or not items_types.exists(tpl):
            raise ImproperActionException("Invalid item type", details={"category": tpl})

        item = Item(
            team=self.user.team,
            userid=self.user.userid,
            title=filters.DEFAULT_TITLE,
            date=filters.today(),
            body=items_types.read_template(tpl),
            category=tpl,
            canread=settings.DEFAULT_CANREAD,
            canwrite=settings.DEFAULT_CANWRITE,
            elabid=self._new_elabid(),
        )
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)

        track_entity_operation(self.type.value, "create")
        logger.info("Item created", entity_id=item.id, userid=self.user.userid, category=tpl)
        return item.id

    def duplicate(self) -> int:
        self.can_or_explode("read")
        source = self.entity_data
        copy = Item(
            team=self.user.team,
            userid=self.user.userid,
            title=filters.title(source["title"] + " I"),
            date=filters.today(),
            body=source["body"],
            category=source["category_id"],
            canread=source["canread"],
            canwrite=source["canwrite"],
            elabid=self._new_elabid(),
            rating=source.get("rating") or 0,
        )
        self.db.add(copy)
        self.db.flush()
        self._copy_children(copy.id)
        self.db.commit()

        track_entity_operation(self.type.value, "duplicate")
        logger.info("Item duplicated", entity_id=self.id, new_id=copy.id)
        return copy.id

    def destroy(self) -> None:
        """Delete the item, its bookings and every link pointing to it."""
        self._check_destroyable()
        self._destroy_children()
        self.db.query(TeamEvent).filter(TeamEvent.item == self.id).delete(
            synchronize_session=False
        )
        for tables in ENTITY_TABLES.values():
            if tables.links is not None:
                self.db.query(tables.links).filter(tables.links.link_id == self.id).delete(
                    synchronize_session=False
                )
        self.db.delete(self._get_row())
        self.db.commit()

        track_entity_operation(self.type.value, "destroy")
        logger.info("Item destroyed", entity_id=self.id, userid=self.user.userid)

    def _decorate_rows(self, items: List[Dict[str, Any]]) -> None:
        # bookings of each item, as a comma separated list of event ids
        ids = [item["id"] for item in items]
        events: Dict[int, List[str]] = {}
        if ids:
            rows = (
                self.db.query(TeamEvent.item, TeamEvent.id)
                .filter(TeamEvent.item.in_(ids))
                .order_by(TeamEvent.id)
                .all()
            )
            for row in rows:
                events.setdefault(row.item, []).append(str(row.id))
        for item in items:
            item["events_id"] = ",".join(events.get(item["id"], [])) or None
