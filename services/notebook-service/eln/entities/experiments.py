"""Experiments: the lab notebook entries of a user."""

from typing import Any, Dict, Optional

from .. import filters
from ..config import settings
from ..domain.entities import EntityType
from ..domain.exceptions import ImproperActionException
from ..logging_config import get_logger
from ..metrics import track_entity_operation
from ..models import Experiment
from ..services.categories import Status
from ..services.teams import Teams
from ..services.users import Users
from .abstract_entity import AbstractEntity
from .templates import Templates

logger = get_logger(__name__)


class Experiments(AbstractEntity):
    type = EntityType.EXPERIMENTS
    page = "experiments"

    def create(self, tpl: Optional[int] = None) -> int:
        """
        Create an experiment with the team's default status.

        Args:
            tpl: Template to copy the body and tags from; the team's common
                template is used when omitted

        Returns:
            Id of the new experiment
        """
        template = None
        if tpl is None:
            body = Teams(self.db, self.user).get_common_template()
        else:
            template = Templates(self.db, self.user, tpl)
            body = template.read(get_tags=False)["body"] or ""

        status = Status(self.db, self.user).read_default()
        if status is None:
            raise ImproperActionException(
                "No status found for this team! Create one in the admin panel first."
            )

        experiment = Experiment(
            team=self.user.team,
            userid=self.user.userid,
            title=filters.DEFAULT_TITLE,
            date=filters.today(),
            body=body,
            category=status["id"],
            canread=settings.DEFAULT_CANREAD,
            canwrite=settings.DEFAULT_CANWRITE,
            elabid=self._new_elabid(),
        )
        self.db.add(experiment)
        self.db.flush()
        if template is not None:
            template.tags.copy_to(experiment.id, new_type=self.type.value)
        self.db.commit()

        track_entity_operation(self.type.value, "create")
        logger.info(
            "Experiment created", entity_id=experiment.id, userid=self.user.userid, tpl=tpl
        )
        return experiment.id

    def duplicate(self) -> int:
        """Copy the experiment as a new unlocked experiment of the current user."""
        self.can_or_explode("read")
        source = self.entity_data
        copy = Experiment(
            team=self.user.team,
            userid=self.user.userid,
            title=filters.title(source["title"] + " I"),
            date=filters.today(),
            body=source["body"],
            category=source["category_id"],
            canread=source["canread"],
            canwrite=source["canwrite"],
            elabid=self._new_elabid(),
        )
        self.db.add(copy)
        self.db.flush()
        self._copy_children(copy.id)
        self.db.commit()

        track_entity_operation(self.type.value, "duplicate")
        logger.info("Experiment duplicated", entity_id=self.id, new_id=copy.id)
        return copy.id

    def destroy(self) -> None:
        self._check_destroyable()
        if self.entity_data.get("timestamped"):
            raise ImproperActionException("You cannot delete a timestamped experiment.")
        self._destroy_children()
        self.db.delete(self._get_row())
        self.db.commit()

        track_entity_operation(self.type.value, "destroy")
        logger.info("Experiment destroyed", entity_id=self.id, userid=self.user.userid)

    def get_timestamp_info(self) -> Dict[str, Any]:
        """Timestamper and timestamp files of a timestamped experiment."""
        if not self.entity_data:
            self.populate()
        if not self.entity_data.get("timestamped"):
            return {}
        return {
            "timestamper": Users(self.db, self.user).read(int(self.entity_data["timestampedby"])),
            "pdf": self.uploads.read_all(upload_type="exp-pdf-timestamp"),
            "token": self.uploads.read_all(upload_type="timestamp-token"),
        }
