"""
Database models for the notebook service.

This module defines SQLAlchemy ORM models for teams, users, team groups,
categories (statuses and item types), the two entity tables (experiments
and items), experiment templates and the sub-resources attached to
entities (tags, comments, steps, links, uploads, revisions, booking events).
"""

from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

from .domain.entities import EntityType

Base: Any = declarative_base()


class Team(Base):
    """
    A team sharing statuses, item types, tags and groups.

    Attributes:
        id: Primary key identifier
        name: Display name
        common_template: Default body for new experiments without a template
        created_at: Creation timestamp
    """

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    common_template = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)


class User(Base):
    """
    Notebook user.

    Attributes:
        userid: Primary key identifier
        team: Team the user logs into by default
        is_admin: Team administrator flag
        is_sysadmin: Instance administrator flag
        can_lock: May lock entities of other team members
        validated: Account validated by a team admin
        is_anon: Anonymous read-only account
    """

    __tablename__ = "users"

    userid = Column(Integer, primary_key=True, index=True)
    firstname = Column(String(255), nullable=False)
    lastname = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    team = Column(Integer, ForeignKey("teams.id"), nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    is_sysadmin = Column(Boolean, default=False, nullable=False)
    can_lock = Column(Boolean, default=False, nullable=False)
    validated = Column(Boolean, default=True, nullable=False)
    is_anon = Column(Boolean, default=False, nullable=False)

    @property
    def fullname(self) -> str:
        return f"{self.firstname} {self.lastname}"


class UsersTeams(Base):
    """Membership of a user in a team."""

    __tablename__ = "users2teams"

    users_id = Column(Integer, ForeignKey("users.userid"), primary_key=True)
    teams_id = Column(Integer, ForeignKey("teams.id"), primary_key=True)


class TeamGroup(Base):
    """Administrator-defined subset of users within a team."""

    __tablename__ = "team_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    team = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)


class TeamGroupMember(Base):
    """Membership of a user in a team group."""

    __tablename__ = "users2team_groups"

    userid = Column(Integer, ForeignKey("users.userid"), primary_key=True)
    groupid = Column(Integer, ForeignKey("team_groups.id"), primary_key=True)


class Status(Base):
    """Category of experiments."""

    __tablename__ = "status"

    id = Column(Integer, primary_key=True, index=True)
    team = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    color = Column(String(6), nullable=False, default="29aeb9")
    is_timestampable = Column(Boolean, default=True, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    ordering = Column(Integer, nullable=True)


class ItemsType(Base):
    """Category of database items, carrying a body template."""

    __tablename__ = "items_types"

    id = Column(Integer, primary_key=True, index=True)
    team = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    color = Column(String(6), nullable=False, default="29aeb9")
    bookable = Column(Boolean, default=False, nullable=False)
    template = Column(Text, nullable=True)
    ordering = Column(Integer, nullable=True)


class EntityMixin:
    """Columns shared by experiments and items."""

    id = Column(Integer, primary_key=True, index=True)
    team = Column(Integer, nullable=False, index=True)
    userid = Column(Integer, nullable=False, index=True)
    title = Column(String(255), nullable=False, default="Untitled")
    date = Column(Date, nullable=False)
    body = Column(Text, nullable=True)
    category = Column(Integer, nullable=False, index=True)
    canread = Column(String(255), nullable=False, default="team")
    canwrite = Column(String(255), nullable=False, default="user")
    locked = Column(Boolean, default=False, nullable=False)
    lockedby = Column(Integer, nullable=True)
    lockedwhen = Column(DateTime, nullable=True)
    elabid = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    lastchange = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)


class Experiment(EntityMixin, Base):
    """Experiment entity, categorized by a status."""

    __tablename__ = "experiments"

    timestamped = Column(Boolean, default=False, nullable=False)
    timestampedby = Column(Integer, nullable=True)
    timestampedwhen = Column(DateTime, nullable=True)

    __table_args__ = (Index("idx_experiments_userid_lastchange", "userid", "lastchange"),)


class Item(EntityMixin, Base):
    """Database (inventory) item entity, categorized by an item type."""

    __tablename__ = "items"

    rating = Column(Integer, default=0, nullable=False)

    __table_args__ = (Index("idx_items_userid_lastchange", "userid", "lastchange"),)


class ExperimentTemplate(Base):
    """Reusable experiment body owned by a user."""

    __tablename__ = "experiments_templates"

    id = Column(Integer, primary_key=True, index=True)
    team = Column(Integer, nullable=False, index=True)
    userid = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    body = Column(Text, nullable=True)
    canread = Column(String(255), nullable=False, default="team")
    canwrite = Column(String(255), nullable=False, default="user")
    ordering = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    lastchange = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)


class Tag(Base):
    """Team-scoped tag."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    team = Column(Integer, nullable=False, index=True)
    tag = Column(String(255), nullable=False)


class TagLink(Base):
    """Association of a tag with an experiment or an item."""

    __tablename__ = "tags2entity"

    id = Column(Integer, primary_key=True)
    tag_id = Column(Integer, ForeignKey("tags.id"), nullable=False, index=True)
    item_id = Column(Integer, nullable=False)
    item_type = Column(String(255), nullable=False)

    __table_args__ = (Index("idx_tags2entity_item", "item_id", "item_type"),)


class CommentMixin:
    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, nullable=False, index=True)
    userid = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    datetime = Column(DateTime, default=func.now(), nullable=False)


class ExperimentComment(CommentMixin, Base):
    __tablename__ = "experiments_comments"


class ItemComment(CommentMixin, Base):
    __tablename__ = "items_comments"


class StepMixin:
    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, nullable=False, index=True)
    body = Column(Text, nullable=False)
    ordering = Column(Integer, nullable=True)
    finished = Column(Boolean, default=False, nullable=False)
    finished_time = Column(DateTime, nullable=True)


class ExperimentStep(StepMixin, Base):
    __tablename__ = "experiments_steps"


class ItemStep(StepMixin, Base):
    __tablename__ = "items_steps"


class LinkMixin:
    # link_id always targets items.id
    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, nullable=False, index=True)
    link_id = Column(Integer, nullable=False, index=True)


class ExperimentLink(LinkMixin, Base):
    __tablename__ = "experiments_links"


class ItemLink(LinkMixin, Base):
    __tablename__ = "items_links"


class RevisionMixin:
    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, nullable=False, index=True)
    body = Column(Text, nullable=True)
    userid = Column(Integer, nullable=False)
    savedate = Column(DateTime, default=func.now(), nullable=False)


class ExperimentRevision(RevisionMixin, Base):
    __tablename__ = "experiments_revisions"


class ItemRevision(RevisionMixin, Base):
    __tablename__ = "items_revisions"


class Upload(Base):
    """
    Metadata of an attached file.

    The type column is the entity type for regular attachments, or one of
    'exp-pdf-timestamp' / 'timestamp-token' for timestamping artifacts.
    """

    __tablename__ = "uploads"

    id = Column(Integer, primary_key=True, index=True)
    real_name = Column(String(255), nullable=False)
    long_name = Column(String(255), nullable=False)
    comment = Column(Text, nullable=True)
    item_id = Column(Integer, nullable=False, index=True)
    userid = Column(Integer, nullable=False)
    type = Column(String(255), nullable=False)
    hash = Column(String(128), nullable=True)
    datetime = Column(DateTime, default=func.now(), nullable=False)

    __table_args__ = (Index("idx_uploads_item_type", "item_id", "type"),)


class TeamEvent(Base):
    """Booking of a bookable item in the team scheduler."""

    __tablename__ = "team_events"

    id = Column(Integer, primary_key=True, index=True)
    team = Column(Integer, nullable=False, index=True)
    item = Column(Integer, nullable=False, index=True)
    start = Column(DateTime, nullable=False)
    end = Column(DateTime, nullable=True)
    title = Column(String(255), nullable=True)
    userid = Column(Integer, nullable=False)


@dataclass(frozen=True)
class EntityTables:
    """ORM classes backing one entity type."""

    entity: Any
    category: Optional[Any]
    comments: Optional[Any]
    steps: Optional[Any]
    links: Optional[Any]
    revisions: Optional[Any]


ENTITY_TABLES = {
    EntityType.EXPERIMENTS: EntityTables(
        entity=Experiment,
        category=Status,
        comments=ExperimentComment,
        steps=ExperimentStep,
        links=ExperimentLink,
        revisions=ExperimentRevision,
    ),
    EntityType.ITEMS: EntityTables(
        entity=Item,
        category=ItemsType,
        comments=ItemComment,
        steps=ItemStep,
        links=ItemLink,
        revisions=ItemRevision,
    ),
    EntityType.TEMPLATES: EntityTables(
        entity=ExperimentTemplate,
        category=None,
        comments=None,
        steps=None,
        links=None,
        revisions=None,
    ),
}


def tables_for(entity_type: EntityType) -> EntityTables:
    """Return the ORM classes backing an entity type."""
    return ENTITY_TABLES[EntityType(entity_type)]
