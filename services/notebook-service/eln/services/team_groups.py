"""
Team groups: administrator-defined subsets of a team usable as visibility.
"""

from typing import Dict, List

from sqlalchemy.orm import Session

from .. import filters
from ..domain.entities import UserContext, Visibility
from ..domain.exceptions import ImproperActionException, ResourceNotFoundException
from ..logging_config import get_logger
from ..memberships import groups_of_user, is_in_team, is_in_team_group
from ..metrics import track_admin_operation
from ..models import Experiment, ExperimentTemplate, Item, TeamGroup, TeamGroupMember, User
from ..permissions import require_admin

logger = get_logger(__name__)

MEMBER_ACTIONS = ("add", "rm")


class TeamGroups:
    """Team groups of the current user's team."""

    def __init__(self, db: Session, user: UserContext):
        self.db = db
        self.user = user

    def create(self, name: str) -> int:
        """
        Create a team group.

        Args:
            name: Group name

        Returns:
            Id of the new group
        """
        require_admin(self.user)
        if not name or not name.strip():
            raise ImproperActionException("Name cannot be empty")

        group = TeamGroup(name=filters.title(name), team=self.user.team)
        self.db.add(group)
        self.db.commit()
        self.db.refresh(group)

        track_admin_operation("team_groups", "create")
        logger.info("Team group created", group_id=group.id, team=self.user.team)
        return group.id

    def read(self) -> List[Dict]:
        """Groups of the team, each with its members."""
        groups = (
            self.db.query(TeamGroup)
            .filter(TeamGroup.team == self.user.team)
            .order_by(TeamGroup.id)
            .all()
        )
        members = (
            self.db.query(TeamGroupMember.groupid, User.userid, User.firstname, User.lastname)
            .join(User, User.userid == TeamGroupMember.userid)
            .filter(TeamGroupMember.groupid.in_([group.id for group in groups]))
            .order_by(User.lastname, User.firstname)
            .all()
        )
        users_by_group: Dict[int, List[Dict]] = {}
        for row in members:
            users_by_group.setdefault(row.groupid, []).append(
                {"userid": row.userid, "fullname": f"{row.firstname} {row.lastname}"}
            )
        return [
            {"id": group.id, "name": group.name, "users": users_by_group.get(group.id, [])}
            for group in groups
        ]

    def read_name(self, groupid: int) -> str:
        """Name of a group of the team."""
        return self._get_group(groupid).name

    def update_name(self, groupid: int, name: str) -> str:
        """
        Rename a group.

        Returns:
            The stored name, as displayed back by the inline editor
        """
        require_admin(self.user)
        group = self._get_group(groupid)
        group.name = filters.title(name)
        self.db.commit()
        track_admin_operation("team_groups", "rename")
        return group.name

    def update_member(self, userid: int, groupid: int, action: str) -> None:
        """
        Add a user to, or remove a user from, a group.

        Args:
            userid: User to add or remove; must belong to the team
            groupid: Group of the team
            action: 'add' or 'rm'
        """
        require_admin(self.user)
        if action not in MEMBER_ACTIONS:
            raise ImproperActionException(
                f"Invalid action: {action}", details={"field": "action", "value": action}
            )
        self._get_group(groupid)
        if not is_in_team(self.db, userid, self.user.team):
            raise ImproperActionException(
                "This user is not in your team!", details={"userid": userid}
            )

        if action == "add":
            if not is_in_team_group(self.db, userid, groupid):
                self.db.add(TeamGroupMember(userid=userid, groupid=groupid))
        else:
            self.db.query(TeamGroupMember).filter(
                TeamGroupMember.userid == userid, TeamGroupMember.groupid == groupid
            ).delete(synchronize_session=False)
        self.db.commit()

        track_admin_operation("team_groups", action)
        logger.info("Team group membership updated", group_id=groupid, userid=userid, action=action)

    def destroy(self, groupid: int) -> None:
        """
        Delete a group.

        Entities whose visibility pointed to the group fall back to 'team'.
        """
        require_admin(self.user)
        group = self._get_group(groupid)

        for model in (Experiment, Item, ExperimentTemplate):
            for column in ("canread", "canwrite"):
                self.db.query(model).filter(getattr(model, column) == str(groupid)).update(
                    {column: Visibility.TEAM.value}, synchronize_session=False
                )
        self.db.query(TeamGroupMember).filter(TeamGroupMember.groupid == groupid).delete(
            synchronize_session=False
        )
        self.db.delete(group)
        self.db.commit()

        track_admin_operation("team_groups", "destroy")
        logger.info("Team group destroyed", group_id=groupid, team=self.user.team)

    def get_groups_from_user(self) -> List[int]:
        """Ids of the groups the current user belongs to."""
        return groups_of_user(self.db, self.user.userid)

    def exists(self, groupid: int) -> bool:
        """Check whether a group belongs to the current team."""
        return self._find(groupid) is not None

    def is_in_team_group(self, userid: int, groupid: int) -> bool:
        return is_in_team_group(self.db, userid, groupid)

    def _find(self, groupid: int):
        return (
            self.db.query(TeamGroup)
            .filter(TeamGroup.id == groupid, TeamGroup.team == self.user.team)
            .first()
        )

    def _get_group(self, groupid: int) -> TeamGroup:
        group = self._find(groupid)
        if group is None:
            raise ResourceNotFoundException("team group", groupid)
        return group
