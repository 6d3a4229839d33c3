"""
SELECT assembly for entity reads.

Listing ("show") and single reads share one SELECT: the entity row joined
with its category, its most recent comment, its first unfinished step, its
owner, the owner's membership in the viewer's team and the presence of
attachments. Listing adds the caller's filters, the visibility predicate,
ordering, limit and offset.

Every value reaches the database as a bound parameter. Filter and order
columns are resolved through allow-lists.
"""

from typing import TYPE_CHECKING, Any, Callable, Dict, List, Tuple

from sqlalchemy import and_, exists, func, or_, select
from sqlalchemy.sql import Select

from .. import filters
from ..domain.entities import EntityType, Visibility
from ..domain.exceptions import IllegalActionException, ImproperActionException
from ..models import Tag, TagLink, Upload, User, UsersTeams, tables_for

if TYPE_CHECKING:
    from .abstract_entity import AbstractEntity

# Columns fetched in show mode; the full read fetches every column
SHOW_COLUMNS = (
    "id",
    "title",
    "date",
    "userid",
    "locked",
    "canread",
    "canwrite",
    "lastchange",
)

SORT_DIRECTIONS = ("ASC", "DESC")


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if str(value).lower() in ("1", "true", "yes", "on"):
        return True
    if str(value).lower() in ("0", "false", "no", "off"):
        return False
    raise ValueError(value)


# filter column -> converter of the raw request value
FILTER_COLUMNS: Dict[str, Callable[[Any], Any]] = {
    "id": int,
    "userid": int,
    "category": int,
    "locked": _to_bool,
    "canread": str,
    "canwrite": str,
    "tag": str,
}

FILTER_ALIASES = {
    "entity.id": "id",
    "entity.userid": "userid",
    "entity.category": "category",
    "categoryt.id": "category",
    "entity.locked": "locked",
    "entity.canread": "canread",
    "entity.canwrite": "canwrite",
    "tags.tag": "tag",
    "owner": "userid",
}


def normalize_filter_column(column: str) -> str:
    """
    Resolve a filter column against the allow-list.

    Raises:
        ImproperActionException: If the column cannot be filtered on
    """
    column = FILTER_ALIASES.get(column, column)
    if column not in FILTER_COLUMNS:
        raise ImproperActionException(
            f"Invalid filter column: {column}", details={"field": "filter", "value": column}
        )
    return column


def convert_filter_value(column: str, value: Any) -> Any:
    try:
        return FILTER_COLUMNS[column](value)
    except (TypeError, ValueError):
        raise ImproperActionException(
            f"Invalid value for filter {column}: {value}",
            details={"field": column, "value": str(value)},
        )


class EntityQuery:
    """
    Builds the read statements of one entity instance.

    Args:
        entity: Entity carrying the type, the current user and the filter state
    """

    def __init__(self, entity: "AbstractEntity"):
        if entity.type not in (EntityType.EXPERIMENTS, EntityType.ITEMS):
            raise IllegalActionException("Nope.")
        self.entity_ctx = entity
        self.type = entity.type
        self.user = entity.user
        tables = tables_for(self.type)

        self.entity = tables.entity.__table__.alias("entity")
        self.categoryt = tables.category.__table__.alias("categoryt")
        self.users = User.__table__
        self.users2teams = UsersTeams.__table__

        comments = tables.comments.__table__
        self.commentst = (
            select(
                comments.c.item_id,
                func.max(comments.c.datetime).label("recent_comment"),
            )
            .group_by(comments.c.item_id)
            .subquery("commentst")
        )

        steps = tables.steps.__table__
        self.first_step = (
            select(
                steps.c.item_id.label("steps_item_id"),
                func.min(steps.c.id).label("step_id"),
            )
            .where(steps.c.finished.is_(False))
            .group_by(steps.c.item_id)
            .subquery("first_step")
        )
        self.stepst = steps.alias("stepst")

        uploads = Upload.__table__
        self.uploadst = (
            select(uploads.c.item_id.label("up_item_id"))
            .where(uploads.c.type == self.type.value)
            .group_by(uploads.c.item_id)
            .subquery("uploads")
        )

    def base(self, full_select: bool = False, team_scoped: bool = True) -> Select:
        """
        The SELECT before any WHERE clause.

        Args:
            full_select: Fetch every entity column instead of the show subset
            team_scoped: Only keep entities whose owner is in the viewer's team
        """
        e = self.entity
        if full_select:
            columns = [column for column in e.c if column.name != "category"]
        else:
            columns = [e.c[name] for name in SHOW_COLUMNS]

        columns += [
            self.uploadst.c.up_item_id,
            self.uploadst.c.up_item_id.is_not(None).label("has_attachment"),
            self.stepst.c.body.label("next_step"),
            self.categoryt.c.id.label("category_id"),
            self.categoryt.c.name.label("category"),
            self.categoryt.c.color,
            (self.users.c.firstname + " " + self.users.c.lastname).label("fullname"),
            self.commentst.c.recent_comment,
            self.commentst.c.recent_comment.is_not(None).label("has_comment"),
        ]
        if self.type == EntityType.EXPERIMENTS:
            if not full_select:
                columns.append(e.c.timestamped)
        else:
            columns.append(self.categoryt.c.bookable)

        team_condition = and_(
            self.users2teams.c.users_id == self.users.c.userid,
            self.users2teams.c.teams_id == self.user.team,
        )
        joined = (
            e.outerjoin(self.categoryt, self.categoryt.c.id == e.c.category)
            .outerjoin(self.commentst, self.commentst.c.item_id == e.c.id)
            .outerjoin(self.first_step, self.first_step.c.steps_item_id == e.c.id)
            .outerjoin(self.stepst, self.stepst.c.id == self.first_step.c.step_id)
            .outerjoin(self.users, e.c.userid == self.users.c.userid)
            .join(self.users2teams, team_condition, isouter=not team_scoped)
            .outerjoin(self.uploadst, self.uploadst.c.up_item_id == e.c.id)
        )
        return select(*columns).select_from(joined)

    def single(self, entity_id: int) -> Select:
        """Full read of one entity, whatever team its owner belongs to."""
        return self.base(full_select=True, team_scoped=False).where(self.entity.c.id == entity_id)

    def show(self, full_select: bool, groups: List[int]) -> Select:
        """Listing statement honouring the entity's filters and pagination."""
        ctx = self.entity_ctx
        e = self.entity
        stmt = self.base(full_select=full_select).where(self.visibility(groups))

        for column, value in ctx.filters:
            stmt = stmt.where(self._filter_clause(column, value))

        if ctx.title_filter:
            stmt = stmt.where(e.c.title.ilike(f"%{ctx.title_filter}%"))
        if ctx.date_filter:
            start, end = filters.parse_period(ctx.date_filter)
            stmt = stmt.where(e.c.date.between(start, end))
        if ctx.body_filter:
            stmt = stmt.where(e.c.body.ilike(f"%{ctx.body_filter}%"))
        if ctx.query_filter:
            stmt = stmt.where(self._query_clause(ctx.query_filter))
        if ctx.id_filter is not None:
            stmt = stmt.where(e.c.id.in_(ctx.id_filter))

        order_column, descending = self.ordering(ctx.order, ctx.sort)
        if descending:
            stmt = stmt.order_by(order_column.desc(), e.c.id.desc())
        else:
            stmt = stmt.order_by(order_column.asc(), e.c.id.asc())

        if ctx.limit is not None:
            stmt = stmt.limit(ctx.limit)
        if ctx.offset is not None:
            stmt = stmt.offset(ctx.offset)
        return stmt

    def visibility(self, groups: List[int]):
        """
        Rows the current user may see in a listing.

        public rows are visible to everyone. Anonymous users see no
        organization or team rows; other users see organization rows, and team
        rows whose owner belongs to their team. user rows are visible to their
        owner and group rows to members of that group. Owners always see their
        rows.
        """
        e = self.entity
        clauses = [
            e.c.canread == Visibility.PUBLIC.value,
            and_(e.c.canread == Visibility.USER.value, e.c.userid == self.user.userid),
            e.c.userid == self.user.userid,
        ]
        if not self.user.is_anon:
            clauses += [
                e.c.canread == Visibility.ORGANIZATION.value,
                and_(
                    e.c.canread == Visibility.TEAM.value,
                    self.users2teams.c.users_id == e.c.userid,
                ),
            ]
        if groups:
            clauses.append(e.c.canread.in_([str(groupid) for groupid in groups]))
        return or_(*clauses)

    def ordering(self, order: str, sort: str) -> Tuple[Any, bool]:
        """
        Resolve the ORDER BY column and direction.

        Raises:
            ImproperActionException: For an unknown column or direction
        """
        e = self.entity
        columns = {
            "date": e.c.date,
            "title": e.c.title,
            "id": e.c.id,
            "lastchange": e.c.lastchange,
            "category": self.categoryt.c.name,
            "comment": self.commentst.c.recent_comment,
            "user": self.users.c.lastname,
        }
        if self.type == EntityType.ITEMS:
            columns["rating"] = e.c.rating
        if order not in columns:
            raise ImproperActionException(
                f"Invalid order: {order}", details={"field": "order", "value": order}
            )
        direction = (sort or "").upper()
        if direction not in SORT_DIRECTIONS:
            raise ImproperActionException(
                f"Invalid sort: {sort}", details={"field": "sort", "value": sort}
            )
        return columns[order], direction == "DESC"

    def _filter_clause(self, column: str, value: Any):
        e = self.entity
        value = convert_filter_value(column, value)
        if column == "tag":
            return exists(
                select(TagLink.id)
                .join(Tag, Tag.id == TagLink.tag_id)
                .where(
                    TagLink.item_id == e.c.id,
                    TagLink.item_type == self.type.value,
                    Tag.tag == value,
                )
            )
        return e.c[column] == value

    def _query_clause(self, term: str):
        e = self.entity
        pattern = f"%{term}%"
        clauses = [
            e.c.title.ilike(pattern),
            e.c.body.ilike(pattern),
            e.c.elabid.ilike(pattern),
        ]
        if term.isdigit():
            clauses.append(e.c.id == int(term))
        return or_(*clauses)

    @staticmethod
    def normalize(row: Dict[str, Any]) -> Dict[str, Any]:
        """Coerce the computed flags of a fetched row to booleans."""
        row = dict(row)
        row["has_attachment"] = bool(row.get("has_attachment"))
        row["has_comment"] = bool(row.get("has_comment"))
        row["locked"] = bool(row.get("locked"))
        return row
