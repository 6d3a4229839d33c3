"""Links from an entity to database items."""

from typing import Dict, List

from ..domain.exceptions import ImproperActionException, ResourceNotFoundException
from ..models import Item, ItemsType
from .base import EntityResource


class Links(EntityResource):
    """Links always target database items."""

    table_attr = "links"

    def create(self, link_id: int) -> int:
        self.entity.can_or_explode("write")
        model = self.model
        target = self.db.get(Item, link_id)
        if target is None:
            raise ResourceNotFoundException("item", link_id)
        existing = (
            self.db.query(model)
            .filter(model.item_id == self.entity.id, model.link_id == link_id)
            .first()
        )
        if existing is not None:
            raise ImproperActionException("This link already exists.")
        link = model(item_id=self.entity.id, link_id=link_id)
        self.db.add(link)
        self.db.commit()
        self.db.refresh(link)
        return link.id

    def read_all(self) -> List[Dict]:
        self.entity.can_or_explode("read")
        model = self.model
        rows = (
            self.db.query(model.id, model.link_id, Item.title, ItemsType.name, ItemsType.color)
            .join(Item, Item.id == model.link_id)
            .outerjoin(ItemsType, ItemsType.id == Item.category)
            .filter(model.item_id == self.entity.id)
            .order_by(ItemsType.name, Item.title)
            .all()
        )
        return [
            {
                "id": row.id,
                "link_id": row.link_id,
                "title": row.title,
                "category": row.name,
                "color": row.color,
            }
            for row in rows
        ]

    def destroy(self, link_row_id: int) -> None:
        self.entity.can_or_explode("write")
        model = self.model
        link = (
            self.db.query(model)
            .filter(model.id == link_row_id, model.item_id == self.entity.id)
            .first()
        )
        if link is None:
            raise ResourceNotFoundException("link", link_row_id)
        self.db.delete(link)
        self.db.commit()

    def copy_to(self, new_id: int) -> None:
        model = self.model
        for row in self.db.query(model).filter(model.item_id == self._require_id()).all():
            self.db.add(model(item_id=new_id, link_id=row.link_id))

    def destroy_all(self) -> None:
        model = self.model
        self.db.query(model).filter(model.item_id == self._require_id()).delete(
            synchronize_session=False
        )
