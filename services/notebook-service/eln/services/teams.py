"""Team settings: name and common experiment template."""

from typing import Dict, Optional

from sqlalchemy.orm import Session

from .. import filters
from ..domain.entities import UserContext
from ..domain.exceptions import ResourceNotFoundException
from ..logging_config import get_logger
from ..metrics import track_admin_operation
from ..models import Team
from ..permissions import require_admin

logger = get_logger(__name__)


class Teams:
    def __init__(self, db: Session, user: UserContext):
        self.db = db
        self.user = user

    def read(self, team_id: Optional[int] = None) -> Dict:
        team = self._get(team_id or self.user.team)
        return {
            "id": team.id,
            "name": team.name,
            "common_template": team.common_template or "",
        }

    def get_common_template(self) -> str:
        return self._get(self.user.team).common_template or ""

    def update_common_template(self, body: str) -> None:
        """Replace the body given to experiments created without a template."""
        require_admin(self.user)
        team = self._get(self.user.team)
        team.common_template = filters.body(body)
        self.db.commit()

        track_admin_operation("teams", "common_template")
        logger.info("Common template updated", team=team.id)

    def _get(self, team_id: int) -> Team:
        team = self.db.get(Team, team_id)
        if team is None:
            raise ResourceNotFoundException("team", team_id)
        return team
