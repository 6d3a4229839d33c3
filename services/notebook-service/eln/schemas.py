"""
Pydantic models for API requests and responses.
"""

import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
    success: bool = True


class CreatedResponse(MessageResponse):
    id: int


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = False
    error: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


# Entities


class EntityCreate(BaseModel):
    """
    Creation payload.

    ``tpl`` is a template id for experiments and an item type id for items.
    Templates use ``name`` and ``body``.
    """

    tpl: Optional[int] = Field(None, gt=0)
    name: Optional[str] = Field(None, max_length=255)
    body: Optional[str] = None


class EntityUpdate(BaseModel):
    title: str = ""
    date: str = ""
    body: str = ""


class PermissionUpdate(BaseModel):
    rw: Literal["read", "write"]
    value: str = Field(..., min_length=1, max_length=255)


class CategoryUpdate(BaseModel):
    category: int = Field(..., gt=0)


class AccessResponse(BaseModel):
    read: bool
    write: bool


class LockResponse(BaseModel):
    locked: bool


class EntitySummary(BaseModel):
    """One row of an entity listing."""

    model_config = ConfigDict(extra="allow")

    id: int
    title: str
    date: Optional[datetime.date] = None
    userid: int
    locked: bool = False
    canread: str
    canwrite: str
    category: Optional[str] = None
    category_id: Optional[int] = None
    color: Optional[str] = None
    fullname: Optional[str] = None
    next_step: Optional[str] = None
    has_attachment: bool = False
    has_comment: bool = False
    recent_comment: Optional[datetime.datetime] = None
    lastchange: Optional[datetime.datetime] = None
    tags: Optional[str] = None
    tags_id: Optional[str] = None


class EntityListResponse(BaseModel):
    items: List[EntitySummary]
    count: int
    has_more: bool
    offset: int
    limit: int


class StepCreate(BaseModel):
    body: str = Field(..., min_length=1)


class LinkCreate(BaseModel):
    link_id: int = Field(..., gt=0)


class TagCreate(BaseModel):
    tag: str = Field(..., min_length=1, max_length=255)


class CommentCreate(BaseModel):
    comment: str = Field(..., min_length=1)


class UploadCreate(BaseModel):
    real_name: str = Field(..., min_length=1, max_length=255)
    long_name: str = Field(..., min_length=1, max_length=255)
    hash: Optional[str] = Field(None, max_length=128)
    comment: str = ""


# Admin


class NameRequest(BaseModel):
    name: str = Field(..., max_length=255)


class TeamGroupMemberUpdate(BaseModel):
    userid: int = Field(..., gt=0)
    action: Literal["add", "rm"]


class StatusCreate(BaseModel):
    name: str = Field(..., max_length=255)
    color: str
    is_timestampable: bool = True
    is_default: bool = False


class ItemsTypeCreate(BaseModel):
    name: str = Field(..., max_length=255)
    color: str
    bookable: bool = False
    template: str = ""


class OrderingUpdate(BaseModel):
    ids: List[int] = Field(..., min_length=1)


class CommonTemplateUpdate(BaseModel):
    body: str = ""


class TagRename(BaseModel):
    tag: str = Field(..., min_length=1)
    new_tag: str = Field(..., min_length=1)
