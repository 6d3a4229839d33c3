"""Checklist steps of experiments and items."""

from datetime import datetime
from typing import Dict, List

from .. import filters
from ..domain.exceptions import ImproperActionException, ResourceNotFoundException
from ..logging_config import get_logger
from .base import EntityResource

logger = get_logger(__name__)


class Steps(EntityResource):
    table_attr = "steps"

    def create(self, body: str) -> int:
        self.entity.can_or_explode("write")
        body = filters.title(body) if body and body.strip() else ""
        if not body:
            raise ImproperActionException("Step cannot be empty")
        model = self.model
        last = (
            self.db.query(model.ordering)
            .filter(model.item_id == self.entity.id)
            .order_by(model.ordering.desc())
            .first()
        )
        step = model(
            item_id=self.entity.id,
            body=body,
            ordering=(last.ordering or 0) + 1 if last else 1,
        )
        self.db.add(step)
        self.db.commit()
        self.db.refresh(step)
        return step.id

    def read_all(self) -> List[Dict]:
        self.entity.can_or_explode("read")
        model = self.model
        rows = (
            self.db.query(model)
            .filter(model.item_id == self.entity.id)
            .order_by(model.ordering, model.id)
            .all()
        )
        return [
            {
                "id": row.id,
                "body": row.body,
                "ordering": row.ordering,
                "finished": row.finished,
                "finished_time": row.finished_time,
            }
            for row in rows
        ]

    def finish(self, step_id: int) -> bool:
        """
        Toggle the finished state of a step.

        Returns:
            The new finished state
        """
        self.entity.can_or_explode("write")
        step = self._get(step_id)
        step.finished = not step.finished
        step.finished_time = datetime.utcnow() if step.finished else None
        self.db.commit()
        return step.finished

    def destroy(self, step_id: int) -> None:
        self.entity.can_or_explode("write")
        self.db.delete(self._get(step_id))
        self.db.commit()

    def copy_to(self, new_id: int) -> None:
        """Copy the steps to another entity of the same type, unfinished."""
        model = self.model
        for row in self.db.query(model).filter(model.item_id == self._require_id()).all():
            self.db.add(model(item_id=new_id, body=row.body, ordering=row.ordering))

    def destroy_all(self) -> None:
        model = self.model
        self.db.query(model).filter(model.item_id == self._require_id()).delete(
            synchronize_session=False
        )

    def _get(self, step_id: int):
        model = self.model
        step = (
            self.db.query(model)
            .filter(model.id == step_id, model.item_id == self.entity.id)
            .first()
        )
        if step is None:
            raise ResourceNotFoundException("step", step_id)
        return step
