"""Comments on experiments and items."""

from datetime import datetime
from typing import Dict, List

from .. import filters
from ..domain.exceptions import (
    IllegalActionException,
    ImproperActionException,
    ResourceNotFoundException,
)
from ..logging_config import get_logger
from ..models import User
from .base import EntityResource

logger = get_logger(__name__)


class Comments(EntityResource):
    """
    Anyone who can read an entity can comment on it. Only the author of a
    comment can edit or delete it.
    """

    table_attr = "comments"

    def create(self, comment: str) -> int:
        self.entity.can_or_explode("read")
        model = self.model
        row = model(
            item_id=self.entity.id,
            userid=self.user.userid,
            comment=self._clean(comment),
            datetime=datetime.utcnow(),
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)

        owner = self.entity.entity_data.get("userid")
        if owner is not None and int(owner) != self.user.userid:
            logger.info(
                "Comment notification queued",
                entity_type=self.entity.type.value,
                entity_id=self.entity.id,
                recipient=owner,
                commenter=self.user.userid,
            )
        return row.id

    def read_all(self) -> List[Dict]:
        self.entity.can_or_explode("read")
        model = self.model
        rows = (
            self.db.query(model, User.firstname, User.lastname)
            .outerjoin(User, User.userid == model.userid)
            .filter(model.item_id == self.entity.id)
            .order_by(model.datetime, model.id)
            .all()
        )
        return [
            {
                "id": comment.id,
                "userid": comment.userid,
                "fullname": f"{firstname} {lastname}" if firstname else "",
                "comment": comment.comment,
                "datetime": comment.datetime,
            }
            for comment, firstname, lastname in rows
        ]

    def update(self, comment_id: int, comment: str) -> str:
        self.entity.can_or_explode("read")
        row = self._get_own(comment_id)
        row.comment = self._clean(comment)
        self.db.commit()
        return row.comment

    def destroy(self, comment_id: int) -> None:
        self.entity.can_or_explode("read")
        self.db.delete(self._get_own(comment_id))
        self.db.commit()

    def destroy_all(self) -> None:
        model = self.model
        self.db.query(model).filter(model.item_id == self._require_id()).delete(
            synchronize_session=False
        )

    def _clean(self, comment: str) -> str:
        if not comment or len(comment.strip()) < 2:
            raise ImproperActionException("Comment is too short")
        return filters.body(comment.strip())

    def _get_own(self, comment_id: int):
        model = self.model
        row = (
            self.db.query(model)
            .filter(model.id == comment_id, model.item_id == self._require_id())
            .first()
        )
        if row is None:
            raise ResourceNotFoundException("comment", comment_id)
        if row.userid != self.user.userid:
            raise IllegalActionException("You can only edit your own comments.")
        return row
