"""
Domain entities for the notebook service.

Value objects shared by the permission resolver, the entity layer and the
HTTP layer. They carry no persistence logic.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict


class EntityType(str, Enum):
    """Kinds of entities stored in the notebook."""

    EXPERIMENTS = "experiments"
    ITEMS = "items"
    TEMPLATES = "experiments_templates"


class Visibility(str, Enum):
    """Visibility scopes usable in the canread/canwrite columns."""

    PUBLIC = "public"
    ORGANIZATION = "organization"
    TEAM = "team"
    USER = "user"

    @classmethod
    def values(cls) -> set:
        return {member.value for member in cls}


class Rw(str, Enum):
    """Axis of a permission check."""

    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class UserContext:
    """
    The authenticated user acting on entities.

    Attributes:
        userid: Primary key of the user
        team: Team the user is currently logged into
        firstname: First name, used in lock messages
        lastname: Last name
        is_admin: Team administrator
        is_sysadmin: Instance administrator
        can_lock: Allowed to lock entities of other users of the team
        is_anon: Anonymous (read-only) visitor
    """

    userid: int
    team: int
    firstname: str = ""
    lastname: str = ""
    is_admin: bool = False
    is_sysadmin: bool = False
    can_lock: bool = False
    is_anon: bool = False

    @property
    def fullname(self) -> str:
        return f"{self.firstname} {self.lastname}".strip()

    @property
    def has_admin_rights(self) -> bool:
        return self.is_admin or self.is_sysadmin


@dataclass(frozen=True)
class Access:
    """Result of a permission check."""

    read: bool = False
    write: bool = False

    def __getitem__(self, rw: str) -> bool:
        return getattr(self, Rw(rw).value)

    def to_dict(self) -> Dict[str, bool]:
        return asdict(self)


NO_ACCESS = Access(read=False, write=False)
READ_ONLY = Access(read=True, write=False)
FULL_ACCESS = Access(read=True, write=True)
