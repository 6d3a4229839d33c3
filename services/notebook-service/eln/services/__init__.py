"""Team administration services."""

from .categories import ItemsTypes, Status
from .team_groups import TeamGroups
from .teams import Teams
from .users import Users, load_user_context

__all__ = ["ItemsTypes", "Status", "TeamGroups", "Teams", "Users", "load_user_context"]
