from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from sitecms.models.content import ContentStatus
from sitecms.schemas.base import CamelModel


class ContentCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=500)
    data: dict[str, Any] = Field(default_factory=dict)
    status: ContentStatus = ContentStatus.DRAFT
    slug: Optional[str] = Field(None, max_length=500)


class ContentUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    data: Optional[dict[str, Any]] = None
    status: Optional[ContentStatus] = None
    slug: Optional[str] = Field(None, max_length=500)
    expected_version: Optional[int] = Field(None, ge=1, description="Reject the update if the stored version differs")


class ContentResponse(CamelModel):
    site_id: str
    content_type_id: str
    content_id: str
    slug: str
    title: str
    data: dict[str, Any]
    status: ContentStatus
    version: int
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class AdminContentResponse(ContentResponse):
    """Adds the pending draft and authorship, visible to site users only."""

    draft_title: Optional[str] = None
    draft_data: Optional[dict[str, Any]] = None
    has_draft: bool = False
    created_by: Optional[str] = None
    updated_by: Optional[str] = None


class RevisionResponse(CamelModel):
    id: int
    content_id: str
    content_type_id: str
    version: int
    title: str
    slug: Optional[str] = None
    status: str
    data: dict[str, Any]
    changed_fields: list[str]
    changed_by: Optional[str] = None
    created_at: datetime
