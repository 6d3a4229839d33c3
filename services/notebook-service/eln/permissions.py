"""
Read/write access resolution for entities.

An entity row carries two visibility columns, ``canread`` and ``canwrite``.
Each holds a scope keyword (public, organization, team, user) or the id of
a team group. ``Permissions`` turns those columns plus the identity of the
current user into an ``Access`` value.
"""

from typing import Any, Mapping

from sqlalchemy.orm import Session

from .checks import check_id
from .domain.entities import FULL_ACCESS, NO_ACCESS, Access, UserContext, Visibility
from .domain.exceptions import IllegalActionException
from .memberships import is_in_team, is_in_team_group


def require_admin(user: UserContext) -> None:
    """
    Ensure the user administers their team.

    Raises:
        IllegalActionException: If the user is neither admin nor sysadmin
    """
    if not user.has_admin_rights:
        raise IllegalActionException("Only a team admin can do this.")


class Permissions:
    """
    Decide what a user can do with one entity row.

    Args:
        db: Database session used for membership lookups
        user: Current user
        item: Entity row; needs ``userid``, ``canread`` and ``canwrite``,
            plus ``team`` for templates
    """

    def __init__(self, db: Session, user: UserContext, item: Mapping[str, Any]):
        self.db = db
        self.user = user
        self.item = item
        self._owner_in_team = None

    @property
    def is_owner(self) -> bool:
        return int(self.item["userid"]) == self.user.userid

    @property
    def owner_in_user_team(self) -> bool:
        """True when the owner of the item is a member of the user's team."""
        if self._owner_in_team is None:
            self._owner_in_team = is_in_team(self.db, int(self.item["userid"]), self.user.team)
        return self._owner_in_team

    def for_exp_item(self) -> Access:
        """Access to an experiment or a database item."""
        if self._can_write():
            return FULL_ACCESS
        return Access(read=self._can_read(), write=False)

    def for_templates(self) -> Access:
        """
        Access to an experiment template.

        Templates are only writable by their owner. Team members can read
        them when the template is shared with a scope that includes them.
        """
        if self.is_owner:
            return FULL_ACCESS
        if int(self.item["team"]) != self.user.team:
            return NO_ACCESS
        return Access(read=self._scope_allows(self.item["canread"]), write=False)

    def _can_write(self) -> bool:
        if self.user.is_anon:
            return False
        if self.is_owner:
            return True
        if self.user.has_admin_rights and self.owner_in_user_team:
            return True
        return self._scope_allows(self.item["canwrite"])

    def _can_read(self) -> bool:
        if self.is_owner:
            return True
        if self.user.has_admin_rights and self.owner_in_user_team:
            return True
        return self._scope_allows(self.item["canread"])

    def _scope_allows(self, value: str) -> bool:
        """Evaluate one visibility value for the current user."""
        if value == Visibility.PUBLIC.value:
            return True
        if value == Visibility.ORGANIZATION.value:
            return not self.user.is_anon
        if value == Visibility.TEAM.value:
            return self.owner_in_user_team and not self.user.is_anon
        if value == Visibility.USER.value:
            return self.is_owner
        groupid = check_id(value)
        if groupid is not None:
            return is_in_team_group(self.db, self.user.userid, groupid)
        return False
