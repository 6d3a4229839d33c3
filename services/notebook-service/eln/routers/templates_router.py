"""
Experiment templates router.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..domain.entities import UserContext
from ..entities import Templates
from ..schemas import (
    CreatedResponse,
    EntityCreate,
    EntityUpdate,
    MessageResponse,
    OrderingUpdate,
    PermissionUpdate,
)
from .entities_router import ERROR_RESPONSES

router = APIRouter(prefix="/api/v1/templates", tags=["templates"])


@router.get("", responses=ERROR_RESPONSES)
async def list_templates(
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> List[Dict[str, Any]]:
    """Templates of the user followed by the ones shared with them."""
    return Templates(db, user).read_all()


@router.post(
    "",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_template(
    payload: EntityCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    template_id = Templates(db, user).create(name=payload.name or "", body=payload.body or "")
    return CreatedResponse(message="Template created", id=template_id)


@router.put("/ordering", response_model=MessageResponse, responses=ERROR_RESPONSES)
async def update_ordering(
    payload: OrderingUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    Templates(db, user).update_ordering(payload.ids)
    return MessageResponse(message="Saved")


@router.get("/{template_id}", responses=ERROR_RESPONSES)
async def read_template(
    template_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> Dict[str, Any]:
    template = Templates(db, user, template_id)
    template.populate()
    data = dict(template.entity_data)
    data["permissions"] = template.get_permissions().to_dict()
    return data


@router.patch("/{template_id}", response_model=MessageResponse, responses=ERROR_RESPONSES)
async def update_template(
    template_id: int,
    payload: EntityUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    Templates(db, user, template_id).update(payload.title, payload.date, payload.body)
    return MessageResponse(message="Saved")


@router.patch(
    "/{template_id}/permissions", response_model=MessageResponse, responses=ERROR_RESPONSES
)
async def update_template_permissions(
    template_id: int,
    payload: PermissionUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    Templates(db, user, template_id).update_permissions(payload.rw, payload.value)
    return MessageResponse(message="Saved")


@router.post(
    "/{template_id}/duplicate",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def duplicate_template(
    template_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    new_id = Templates(db, user, template_id).duplicate()
    return CreatedResponse(message="Template duplicated", id=new_id)


@router.delete("/{template_id}", response_model=MessageResponse, responses=ERROR_RESPONSES)
async def destroy_template(
    template_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    Templates(db, user, template_id).destroy()
    return MessageResponse(message="Template deleted")
