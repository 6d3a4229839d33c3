"""
Experiments and database items router.

Listing, single reads, updates and the records attached to an entity.
Domain exceptions raised by the entity layer are translated to HTTP
responses by the application exception handlers.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import filters
from ..auth import get_current_user
from ..config import settings
from ..database import get_db
from ..domain.entities import EntityType, UserContext
from ..entities import AbstractEntity, get_entity
from ..logging_config import get_logger
from ..schemas import (
    AccessResponse,
    CategoryUpdate,
    CommentCreate,
    CreatedResponse,
    EntityCreate,
    EntityListResponse,
    EntityUpdate,
    ErrorResponse,
    LinkCreate,
    LockResponse,
    MessageResponse,
    PermissionUpdate,
    StepCreate,
    TagCreate,
    UploadCreate,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["entities"])

ERROR_RESPONSES = {
    400: {"description": "Improper action", "model": ErrorResponse},
    401: {"description": "Unauthorized"},
    403: {"description": "Permission denied", "model": ErrorResponse},
    404: {"description": "Not found", "model": ErrorResponse},
}


class ShowableType(str, Enum):
    """Entity types reachable under /api/v1/{entity_type}."""

    EXPERIMENTS = "experiments"
    ITEMS = "items"


def _entity(
    entity_type: ShowableType,
    db: Session,
    user: UserContext,
    entity_id: Optional[int] = None,
) -> AbstractEntity:
    return get_entity(EntityType(entity_type.value), db, user, entity_id)


# Declared before the /{entity_type}/{entity_id} routes so they take precedence


@router.get("/autocomplete/{source}", response_model=List[str], responses=ERROR_RESPONSES)
async def autocomplete(
    source: str,
    term: str = Query("", max_length=200),
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    """Link candidates as 'id - category - title' strings."""
    return get_entity(EntityType.EXPERIMENTS, db, user).get_autocomplete(term, source)


@router.get("/mentions", response_model=List[Dict[str, str]])
async def mentions(
    term: str = Query("", max_length=200),
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    """Items and experiments matching a term, for the editor mention plugin."""
    return get_entity(EntityType.EXPERIMENTS, db, user).get_mention_list(term)


@router.get("/{entity_type}", response_model=EntityListResponse, responses=ERROR_RESPONSES)
async def list_entities(
    entity_type: ShowableType,
    owner: Optional[int] = Query(None, gt=0),
    category: Optional[int] = Query(None, gt=0),
    tag: Optional[str] = Query(None, max_length=255),
    q: Optional[str] = Query(None, max_length=200),
    title: Optional[str] = Query(None, max_length=200),
    body: Optional[str] = Query(None, max_length=200),
    date: Optional[str] = Query(None, max_length=17),
    order: str = Query("date"),
    sort: str = Query("DESC"),
    limit: int = Query(settings.SHOW_LIMIT, ge=1, le=500),
    offset: int = Query(0, ge=0),
    extended: bool = Query(False),
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    """
    List the entities visible to the current user.

    One row more than ``limit`` is fetched to report ``has_more``.
    """
    entity = _entity(entity_type, db, user)
    entity.add_filter("userid", owner)
    entity.add_filter("category", category)
    entity.add_filter("tag", tag)
    entity.query_filter = filters.sanitize_term(q or "")
    entity.title_filter = filters.sanitize_term(title or "")
    entity.body_filter = filters.sanitize_term(body or "")
    entity.date_filter = date or ""
    entity.order = order
    entity.sort = sort
    entity.set_limit(limit)
    entity.set_offset(offset)

    rows = entity.read_show(extended=extended)
    has_more = len(rows) > limit
    rows = rows[:limit]

    logger.info(
        "Entities listed",
        entity_type=entity_type.value,
        userid=user.userid,
        count=len(rows),
        has_more=has_more,
    )
    return EntityListResponse(
        items=rows, count=len(rows), has_more=has_more, offset=offset, limit=limit
    )


@router.post(
    "/{entity_type}",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_entity(
    entity_type: ShowableType,
    payload: EntityCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    """Create an experiment (from a template) or an item (of an item type)."""
    entity_id = _entity(entity_type, db, user).create(payload.tpl)
    return CreatedResponse(message="Entity created", id=entity_id)


@router.get("/{entity_type}/{entity_id}", responses=ERROR_RESPONSES)
async def read_entity(
    entity_type: ShowableType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> Dict[str, Any]:
    """Full entity with the current user's access to it."""
    entity = _entity(entity_type, db, user, entity_id)
    entity.populate()
    data = dict(entity.entity_data)
    data["permissions"] = entity.get_permissions().to_dict()
    data["canread_name"] = entity.get_can("read")
    data["canwrite_name"] = entity.get_can("write")
    return data


@router.patch("/{entity_type}/{entity_id}", response_model=MessageResponse, responses=ERROR_RESPONSES)
async def update_entity(
    entity_type: ShowableType,
    entity_id: int,
    payload: EntityUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    _entity(entity_type, db, user, entity_id).update(payload.title, payload.date, payload.body)
    return MessageResponse(message="Saved")


@router.delete("/{entity_type}/{entity_id}", response_model=MessageResponse, responses=ERROR_RESPONSES)
async def destroy_entity(
    entity_type: ShowableType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    _entity(entity_type, db, user, entity_id).destroy()
    return MessageResponse(message="Entity deleted")


@router.post("/{entity_type}/{entity_id}/lock", response_model=LockResponse, responses=ERROR_RESPONSES)
async def toggle_lock(
    entity_type: ShowableType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    locked = _entity(entity_type, db, user, entity_id).toggle_lock()
    return LockResponse(locked=locked)


@router.get(
    "/{entity_type}/{entity_id}/permissions",
    response_model=AccessResponse,
    responses=ERROR_RESPONSES,
)
async def read_permissions(
    entity_type: ShowableType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    access = _entity(entity_type, db, user, entity_id).get_permissions()
    return AccessResponse(**access.to_dict())


@router.patch(
    "/{entity_type}/{entity_id}/permissions",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
)
async def update_permissions(
    entity_type: ShowableType,
    entity_id: int,
    payload: PermissionUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    _entity(entity_type, db, user, entity_id).update_permissions(payload.rw, payload.value)
    return MessageResponse(message="Saved")


@router.patch(
    "/{entity_type}/{entity_id}/category",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
)
async def update_category(
    entity_type: ShowableType,
    entity_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    _entity(entity_type, db, user, entity_id).update_category(payload.category)
    return MessageResponse(message="Saved")


@router.post(
    "/{entity_type}/{entity_id}/duplicate",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def duplicate_entity(
    entity_type: ShowableType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    new_id = _entity(entity_type, db, user, entity_id).duplicate()
    return CreatedResponse(message="Entity duplicated", id=new_id)


@router.get("/{entity_type}/{entity_id}/timestamp", responses=ERROR_RESPONSES)
async def read_timestamp_info(
    entity_type: ShowableType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> Dict[str, Any]:
    entity = _entity(entity_type, db, user, entity_id)
    entity.can_or_explode("read")
    return entity.get_timestamp_info()


# Steps


@router.get("/{entity_type}/{entity_id}/steps", responses=ERROR_RESPONSES)
async def list_steps(
    entity_type: ShowableType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> List[Dict[str, Any]]:
    return _entity(entity_type, db, user, entity_id).steps.read_all()


@router.post(
    "/{entity_type}/{entity_id}/steps",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_step(
    entity_type: ShowableType,
    entity_id: int,
    payload: StepCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    step_id = _entity(entity_type, db, user, entity_id).steps.create(payload.body)
    return CreatedResponse(message="Step added", id=step_id)


@router.patch("/{entity_type}/{entity_id}/steps/{step_id}/finish", responses=ERROR_RESPONSES)
async def finish_step(
    entity_type: ShowableType,
    entity_id: int,
    step_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> Dict[str, bool]:
    finished = _entity(entity_type, db, user, entity_id).steps.finish(step_id)
    return {"finished": finished}


@router.delete(
    "/{entity_type}/{entity_id}/steps/{step_id}",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
)
async def destroy_step(
    entity_type: ShowableType,
    entity_id: int,
    step_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    _entity(entity_type, db, user, entity_id).steps.destroy(step_id)
    return MessageResponse(message="Step deleted")


# Links


@router.get("/{entity_type}/{entity_id}/links", responses=ERROR_RESPONSES)
async def list_links(
    entity_type: ShowableType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> List[Dict[str, Any]]:
    return _entity(entity_type, db, user, entity_id).links.read_all()


@router.post(
    "/{entity_type}/{entity_id}/links",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_link(
    entity_type: ShowableType,
    entity_id: int,
    payload: LinkCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    link_id = _entity(entity_type, db, user, entity_id).links.create(payload.link_id)
    return CreatedResponse(message="Link added", id=link_id)


@router.delete(
    "/{entity_type}/{entity_id}/links/{link_id}",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
)
async def destroy_link(
    entity_type: ShowableType,
    entity_id: int,
    link_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    _entity(entity_type, db, user, entity_id).links.destroy(link_id)
    return MessageResponse(message="Link deleted")


# Tags


@router.get("/{entity_type}/{entity_id}/tags", responses=ERROR_RESPONSES)
async def list_tags(
    entity_type: ShowableType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> List[Dict[str, Any]]:
    entity = _entity(entity_type, db, user, entity_id)
    entity.can_or_explode("read")
    return entity.tags.read_all()


@router.post(
    "/{entity_type}/{entity_id}/tags",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_tag(
    entity_type: ShowableType,
    entity_id: int,
    payload: TagCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    tag_id = _entity(entity_type, db, user, entity_id).tags.create(payload.tag)
    return CreatedResponse(message="Tag added", id=tag_id)


@router.delete(
    "/{entity_type}/{entity_id}/tags/{tag_id}",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
)
async def unreference_tag(
    entity_type: ShowableType,
    entity_id: int,
    tag_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    _entity(entity_type, db, user, entity_id).tags.unreference(tag_id)
    return MessageResponse(message="Tag removed")


# Comments


@router.get("/{entity_type}/{entity_id}/comments", responses=ERROR_RESPONSES)
async def list_comments(
    entity_type: ShowableType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> List[Dict[str, Any]]:
    return _entity(entity_type, db, user, entity_id).comments.read_all()


@router.post(
    "/{entity_type}/{entity_id}/comments",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_comment(
    entity_type: ShowableType,
    entity_id: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    comment_id = _entity(entity_type, db, user, entity_id).comments.create(payload.comment)
    return CreatedResponse(message="Comment added", id=comment_id)


@router.patch(
    "/{entity_type}/{entity_id}/comments/{comment_id}",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
)
async def update_comment(
    entity_type: ShowableType,
    entity_id: int,
    comment_id: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    _entity(entity_type, db, user, entity_id).comments.update(comment_id, payload.comment)
    return MessageResponse(message="Saved")


@router.delete(
    "/{entity_type}/{entity_id}/comments/{comment_id}",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
)
async def destroy_comment(
    entity_type: ShowableType,
    entity_id: int,
    comment_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    _entity(entity_type, db, user, entity_id).comments.destroy(comment_id)
    return MessageResponse(message="Comment deleted")


# Uploads


@router.get("/{entity_type}/{entity_id}/uploads", responses=ERROR_RESPONSES)
async def list_uploads(
    entity_type: ShowableType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> List[Dict[str, Any]]:
    entity = _entity(entity_type, db, user, entity_id)
    entity.can_or_explode("read")
    return entity.uploads.read_all()


@router.post(
    "/{entity_type}/{entity_id}/uploads",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_upload(
    entity_type: ShowableType,
    entity_id: int,
    payload: UploadCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    upload_id = _entity(entity_type, db, user, entity_id).uploads.create(
        payload.real_name, payload.long_name, payload.hash, payload.comment
    )
    return CreatedResponse(message="File registered", id=upload_id)


@router.patch(
    "/{entity_type}/{entity_id}/uploads/{upload_id}",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
)
async def update_upload_comment(
    entity_type: ShowableType,
    entity_id: int,
    upload_id: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    _entity(entity_type, db, user, entity_id).uploads.update_comment(upload_id, payload.comment)
    return MessageResponse(message="Saved")


@router.delete(
    "/{entity_type}/{entity_id}/uploads/{upload_id}",
    response_model=MessageResponse,
    responses=ERROR_RESPONSES,
)
async def destroy_upload(
    entity_type: ShowableType,
    entity_id: int,
    upload_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
):
    _entity(entity_type, db, user, entity_id).uploads.destroy(upload_id)
    return MessageResponse(message="File deleted")


@router.get("/{entity_type}/{entity_id}/revisions", responses=ERROR_RESPONSES)
async def list_revisions(
    entity_type: ShowableType,
    entity_id: int,
    db: Session = Depends(get_db),
    user: UserContext = Depends(get_current_user),
) -> List[Dict[str, Any]]:
    return _entity(entity_type, db, user, entity_id).revisions.read_all()
