"""
User lookups and team administration of users.
"""

from typing import Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from .. import filters
from ..domain.entities import UserContext
from ..domain.exceptions import (
    IllegalActionException,
    ImproperActionException,
    ResourceNotFoundException,
)
from ..logging_config import get_logger
from ..memberships import is_in_team
from ..metrics import track_admin_operation
from ..models import User, UsersTeams
from ..permissions import require_admin

logger = get_logger(__name__)

AUTOCOMPLETE_LIMIT = 20


def load_user_context(db: Session, userid: int, team: Optional[int] = None) -> UserContext:
    """
    Build the identity of an authenticated user.

    Args:
        db: Database session
        userid: Id of the user
        team: Team the session is bound to; defaults to the user's team

    Raises:
        ResourceNotFoundException: If the user does not exist
        IllegalActionException: If the account awaits validation or the user
            is not a member of the requested team
    """
    user = db.get(User, userid)
    if user is None:
        raise ResourceNotFoundException("user", userid)
    if not user.validated:
        raise IllegalActionException("Your account has not been validated yet.")
    team = team or user.team
    if not is_in_team(db, userid, team):
        raise IllegalActionException("You are not a member of this team.")
    return UserContext(
        userid=user.userid,
        team=team,
        firstname=user.firstname,
        lastname=user.lastname,
        is_admin=user.is_admin,
        is_sysadmin=user.is_sysadmin,
        can_lock=user.can_lock,
        is_anon=user.is_anon,
    )


class Users:
    """Users as seen from the current user's team."""

    def __init__(self, db: Session, user: UserContext):
        self.db = db
        self.user = user

    def read(self, userid: int) -> Dict:
        user = self.db.get(User, userid)
        if user is None:
            raise ResourceNotFoundException("user", userid)
        return {
            "userid": user.userid,
            "firstname": user.firstname,
            "lastname": user.lastname,
            "fullname": user.fullname,
            "email": user.email,
            "team": user.team,
            "validated": user.validated,
        }

    def read_from_team(self, term: str) -> List[str]:
        """
        Autocomplete entries for adding users to a team group.

        Returns:
            Entries formatted as 'userid - Firstname Lastname'
        """
        require_admin(self.user)
        term = filters.sanitize_term(term)
        pattern = f"%{term}%"
        rows = (
            self.db.query(User)
            .join(UsersTeams, UsersTeams.users_id == User.userid)
            .filter(
                UsersTeams.teams_id == self.user.team,
                User.validated.is_(True),
                or_(
                    User.firstname.ilike(pattern),
                    User.lastname.ilike(pattern),
                    User.email.ilike(pattern),
                ),
            )
            .order_by(User.lastname, User.firstname)
            .limit(AUTOCOMPLETE_LIMIT)
            .all()
        )
        return [f"{row.userid} - {row.fullname}" for row in rows]

    def validate(self, userid: int) -> None:
        """Validate a newly registered account of the team."""
        require_admin(self.user)
        user = self.db.get(User, userid)
        if user is None or not is_in_team(self.db, userid, self.user.team):
            raise ResourceNotFoundException("user", userid)
        if user.validated:
            raise ImproperActionException("This user is already validated.")
        user.validated = True
        self.db.commit()

        track_admin_operation("users", "validate")
        logger.info("User validated", userid=userid, by=self.user.userid)
