"""
Team and team group membership lookups.
"""

from typing import List

from sqlalchemy.orm import Session

from .models import TeamGroup, TeamGroupMember, UsersTeams


def is_in_team(db: Session, userid: int, team: int) -> bool:
    """Check whether a user belongs to a team."""
    return (
        db.query(UsersTeams)
        .filter(UsersTeams.users_id == userid, UsersTeams.teams_id == team)
        .first()
        is not None
    )


def is_in_team_group(db: Session, userid: int, groupid: int) -> bool:
    """Check whether a user belongs to a team group."""
    return (
        db.query(TeamGroupMember)
        .filter(TeamGroupMember.userid == userid, TeamGroupMember.groupid == groupid)
        .first()
        is not None
    )


def groups_of_user(db: Session, userid: int) -> List[int]:
    """Ids of every team group the user is a member of."""
    rows = (
        db.query(TeamGroupMember.groupid)
        .join(TeamGroup, TeamGroup.id == TeamGroupMember.groupid)
        .filter(TeamGroupMember.userid == userid)
        .order_by(TeamGroupMember.groupid)
        .all()
    )
    return [row.groupid for row in rows]
