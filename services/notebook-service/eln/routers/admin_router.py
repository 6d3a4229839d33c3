"""
Team administration router.

Team groups, statuses, item types, the common template, tags and user
validation. Every endpoint requires a team admin.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..auth import require_admin_user
from ..database import get_db
from ..domain.entities import UserContext
from ..entities import Experiments
from ..logging_config import get_logger
from ..schemas import (
    CommonTemplateUpdate,
    CreatedResponse,
    ItemsTypeCreate,
    MessageResponse,
    NameRequest,
    OrderingUpdate,
    StatusCreate,
    TagRename,
    TeamGroupMemberUpdate,
)
from ..services import ItemsTypes, Status, TeamGroups, Teams, Users
from .entities_router import ERROR_RESPONSES

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/admin", tags=["admin"], responses=ERROR_RESPONSES)


# Team groups


@router.get("/team_groups")
async def list_team_groups(
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
) -> List[Dict[str, Any]]:
    return TeamGroups(db, user).read()


@router.post("/team_groups", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_team_group(
    payload: NameRequest,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
):
    groupid = TeamGroups(db, user).create(payload.name)
    return CreatedResponse(message="Team group created", id=groupid)


@router.patch("/team_groups/{groupid}")
async def update_team_group(
    groupid: int,
    payload: NameRequest,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
) -> Dict[str, str]:
    """Rename a team group; the stored name is returned for in-place editing."""
    return {"name": TeamGroups(db, user).update_name(groupid, payload.name)}


@router.patch("/team_groups/{groupid}/members", response_model=MessageResponse)
async def update_team_group_member(
    groupid: int,
    payload: TeamGroupMemberUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
):
    TeamGroups(db, user).update_member(payload.userid, groupid, payload.action)
    return MessageResponse(message="Saved")


@router.delete("/team_groups/{groupid}", response_model=MessageResponse)
async def destroy_team_group(
    groupid: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
):
    TeamGroups(db, user).destroy(groupid)
    return MessageResponse(message="Team group deleted")


# Statuses


@router.get("/status")
async def list_statuses(
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
) -> List[Dict[str, Any]]:
    return Status(db, user).read_all()


@router.post("/status", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_status(
    payload: StatusCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
):
    status_id = Status(db, user).create(
        payload.name, payload.color, payload.is_timestampable, payload.is_default
    )
    return CreatedResponse(message="Status created", id=status_id)


@router.put("/status/ordering", response_model=MessageResponse)
async def update_status_ordering(
    payload: OrderingUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
):
    Status(db, user).update_ordering(payload.ids)
    return MessageResponse(message="Saved")


@router.put("/status/{status_id}", response_model=MessageResponse)
async def update_status(
    status_id: int,
    payload: StatusCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
):
    Status(db, user).update(
        status_id, payload.name, payload.color, payload.is_timestampable, payload.is_default
    )
    return MessageResponse(message="Saved")


@router.delete("/status/{status_id}", response_model=MessageResponse)
async def destroy_status(
    status_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
):
    Status(db, user).destroy(status_id)
    return MessageResponse(message="Status deleted")


# Item types


@router.get("/items_types")
async def list_items_types(
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
) -> List[Dict[str, Any]]:
    return ItemsTypes(db, user).read_all()


@router.post("/items_types", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_items_type(
    payload: ItemsTypeCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
):
    items_type_id = ItemsTypes(db, user).create(
        payload.name, payload.color, payload.bookable, payload.template
    )
    return CreatedResponse(message="Item type created", id=items_type_id)


@router.put("/items_types/ordering", response_model=MessageResponse)
async def update_items_types_ordering(
    payload: OrderingUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
):
    ItemsTypes(db, user).update_ordering(payload.ids)
    return MessageResponse(message="Saved")


@router.put("/items_types/{items_type_id}", response_model=MessageResponse)
async def update_items_type(
    items_type_id: int,
    payload: ItemsTypeCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
):
    ItemsTypes(db, user).update(
        items_type_id, payload.name, payload.color, payload.bookable, payload.template
    )
    return MessageResponse(message="Saved")


@router.delete("/items_types/{items_type_id}", response_model=MessageResponse)
async def destroy_items_type(
    items_type_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
):
    ItemsTypes(db, user).destroy(items_type_id)
    return MessageResponse(message="Item type deleted")


# Team


@router.patch("/common_template", response_model=MessageResponse)
async def update_common_template(
    payload: CommonTemplateUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
):
    Teams(db, user).update_common_template(payload.body)
    return MessageResponse(message="Saved")


@router.patch("/tags", response_model=MessageResponse)
async def rename_tag(
    payload: TagRename,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
):
    Experiments(db, user).tags.update(payload.tag, payload.new_tag)
    return MessageResponse(message="Saved")


@router.delete("/tags/{tag_id}", response_model=MessageResponse)
async def destroy_tag(
    tag_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
):
    Experiments(db, user).tags.destroy(tag_id)
    return MessageResponse(message="Tag deleted")


# Users


@router.get("/users/autocomplete")
async def autocomplete_users(
    term: str = Query("", max_length=200),
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
) -> List[str]:
    return Users(db, user).read_from_team(term)


@router.patch("/users/{userid}/validate", response_model=MessageResponse)
async def validate_user(
    userid: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(require_admin_user),
):
    Users(db, user).validate(userid)
    return MessageResponse(message="User validated")
