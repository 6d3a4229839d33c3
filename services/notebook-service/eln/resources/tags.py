"""
Team tags and their attachment to entities.

Tags are shared by the whole team; ``tags2entity`` links a tag to an entity
of a given type. A tag that is no longer linked to anything is removed.
"""

from typing import Dict, List, Optional

from sqlalchemy import and_

from .. import filters
from ..domain.exceptions import ImproperActionException, ResourceNotFoundException
from ..logging_config import get_logger
from ..metrics import track_admin_operation
from ..models import Tag, TagLink
from ..permissions import require_admin
from .base import EntityResource

logger = get_logger(__name__)


class Tags(EntityResource):
    def create(self, tag: str) -> int:
        """
        Attach a tag to the entity, creating the team tag when needed.

        Returns:
            Id of the tag
        """
        self.entity.can_or_explode("write")
        tag = filters.tag(tag or "")
        if len(tag) < 1:
            raise ImproperActionException("Tag is too short!")

        row = self._find(tag)
        if row is None:
            row = Tag(team=self.user.team, tag=tag)
            self.db.add(row)
            self.db.flush()

        linked = (
            self.db.query(TagLink)
            .filter(
                TagLink.tag_id == row.id,
                TagLink.item_id == self.entity.id,
                TagLink.item_type == self.entity.type.value,
            )
            .first()
        )
        if linked is None:
            self.db.add(
                TagLink(tag_id=row.id, item_id=self.entity.id, item_type=self.entity.type.value)
            )
        self.db.commit()
        return row.id

    def read_all(self) -> List[Dict]:
        rows = (
            self.db.query(Tag.id, Tag.tag)
            .join(TagLink, TagLink.tag_id == Tag.id)
            .filter(
                TagLink.item_id == self._require_id(),
                TagLink.item_type == self.entity.type.value,
            )
            .order_by(Tag.tag)
            .all()
        )
        return [{"tag_id": row.id, "tag": row.tag} for row in rows]

    def read_team(self, term: str = "") -> List[str]:
        """Tags of the team matching a term, for autocompletion."""
        query = self.db.query(Tag.tag).filter(Tag.team == self.user.team)
        term = filters.sanitize_term(term)
        if term:
            query = query.filter(Tag.tag.ilike(f"%{term}%"))
        return [row.tag for row in query.order_by(Tag.tag).all()]

    def unreference(self, tag_id: int) -> None:
        """Detach a tag from the entity."""
        self.entity.can_or_explode("write")
        self.db.query(TagLink).filter(
            TagLink.tag_id == tag_id,
            TagLink.item_id == self.entity.id,
            TagLink.item_type == self.entity.type.value,
        ).delete(synchronize_session=False)
        self._purge_orphan(tag_id)
        self.db.commit()

    def copy_to(self, new_id: int, new_type: Optional[str] = None) -> None:
        """Link the tags of the entity to another entity."""
        rows = (
            self.db.query(TagLink.tag_id)
            .filter(
                TagLink.item_id == self._require_id(),
                TagLink.item_type == self.entity.type.value,
            )
            .all()
        )
        for row in rows:
            self.db.add(
                TagLink(
                    tag_id=row.tag_id,
                    item_id=new_id,
                    item_type=new_type or self.entity.type.value,
                )
            )

    def update(self, tag: str, new_tag: str) -> None:
        """
        Rename a team tag. Renaming onto an existing tag merges both.
        """
        require_admin(self.user)
        row = self._find(tag)
        if row is None:
            raise ResourceNotFoundException("tag", tag)
        new_tag = filters.tag(new_tag or "")
        if not new_tag:
            raise ImproperActionException("Tag is too short!")

        target = self._find(new_tag)
        if target is None or target.id == row.id:
            row.tag = new_tag
        else:
            self._merge(row, target)
        self.db.commit()

        track_admin_operation("tags", "update")
        logger.info("Tag renamed", team=self.user.team, old=tag, new=new_tag)

    def destroy(self, tag_id: int) -> None:
        """Delete a team tag and every link to it."""
        require_admin(self.user)
        row = (
            self.db.query(Tag)
            .filter(Tag.id == tag_id, Tag.team == self.user.team)
            .first()
        )
        if row is None:
            raise ResourceNotFoundException("tag", tag_id)
        self.db.query(TagLink).filter(TagLink.tag_id == tag_id).delete(
            synchronize_session=False
        )
        self.db.delete(row)
        self.db.commit()
        track_admin_operation("tags", "destroy")

    def destroy_all(self) -> None:
        tag_ids = [
            row.tag_id
            for row in self.db.query(TagLink.tag_id)
            .filter(
                TagLink.item_id == self._require_id(),
                TagLink.item_type == self.entity.type.value,
            )
            .all()
        ]
        self.db.query(TagLink).filter(
            TagLink.item_id == self.entity.id,
            TagLink.item_type == self.entity.type.value,
        ).delete(synchronize_session=False)
        for tag_id in tag_ids:
            self._purge_orphan(tag_id)

    def _merge(self, source: Tag, target: Tag) -> None:
        links = self.db.query(TagLink).filter(TagLink.tag_id == source.id).all()
        for link in links:
            duplicate = (
                self.db.query(TagLink)
                .filter(
                    and_(
                        TagLink.tag_id == target.id,
                        TagLink.item_id == link.item_id,
                        TagLink.item_type == link.item_type,
                    )
                )
                .first()
            )
            if duplicate is None:
                link.tag_id = target.id
            else:
                self.db.delete(link)
        self.db.flush()
        self.db.delete(source)

    def _purge_orphan(self, tag_id: int) -> None:
        if self.db.query(TagLink).filter(TagLink.tag_id == tag_id).first() is None:
            self.db.query(Tag).filter(Tag.id == tag_id).delete(synchronize_session=False)

    def _find(self, tag: str) -> Optional[Tag]:
        return (
            self.db.query(Tag)
            .filter(Tag.team == self.user.team, Tag.tag == tag)
            .first()
        )
