"""Body history of experiments and items."""

from typing import Dict, List

from ..logging_config import get_logger
from .base import EntityResource

logger = get_logger(__name__)


class Revisions(EntityResource):
    table_attr = "revisions"

    def create(self, body: str) -> bool:
        """
        Store a body revision unless it matches the latest one, or the
        current body when the entity has no revision yet.

        Returns:
            True when a revision was stored
        """
        model = self.model
        latest = (
            self.db.query(model.body)
            .filter(model.item_id == self._require_id())
            .order_by(model.id.desc())
            .first()
        )
        if latest is not None:
            previous = latest.body
        else:
            current = self.db.get(self.entity.tables.entity, self.entity.id)
            previous = current.body if current is not None else None
        if previous == body:
            return False
        self.db.add(model(item_id=self.entity.id, body=body, userid=self.user.userid))
        return True

    def read_all(self) -> List[Dict]:
        self.entity.can_or_explode("read")
        model = self.model
        rows = (
            self.db.query(model)
            .filter(model.item_id == self.entity.id)
            .order_by(model.id.desc())
            .all()
        )
        return [
            {"id": row.id, "body": row.body, "userid": row.userid, "savedate": row.savedate}
            for row in rows
        ]

    def read_count(self) -> int:
        model = self.model
        return self.db.query(model).filter(model.item_id == self._require_id()).count()

    def destroy_all(self) -> None:
        model = self.model
        self.db.query(model).filter(model.item_id == self._require_id()).delete(
            synchronize_session=False
        )
