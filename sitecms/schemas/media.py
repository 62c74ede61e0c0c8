from datetime import datetime
from typing import Optional

from pydantic import Field

from sitecms.models.media import MediaType
from sitecms.schemas.base import CamelModel


class MediaMetadata(CamelModel):
    width: Optional[int] = Field(None, ge=0)
    height: Optional[int] = Field(None, ge=0)
    duration: Optional[float] = Field(None, ge=0)
    aspect_ratio: Optional[str] = None


class MediaCreate(CamelModel):
    name: Optional[str] = Field(None, max_length=500)
    original_name: str = Field(..., min_length=1, max_length=500)
    type: MediaType
    mime_type: str = Field(..., min_length=1, max_length=255)
    size: int = Field(0, ge=0)
    url: str = Field(..., min_length=1)
    thumbnail_url: Optional[str] = None
    metadata: MediaMetadata = Field(default_factory=MediaMetadata)
    folder: str = Field("root", min_length=1, max_length=255)
    tags: list[str] = Field(default_factory=list)
    alt: str = ""
    description: str = ""


class MediaUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=500)
    thumbnail_url: Optional[str] = None
    metadata: Optional[MediaMetadata] = None
    folder: Optional[str] = Field(None, min_length=1, max_length=255)
    tags: Optional[list[str]] = None
    alt: Optional[str] = None
    description: Optional[str] = None


class MediaResponse(CamelModel):
    media_id: str
    name: str
    original_name: str
    type: MediaType
    mime_type: str
    size: int
    url: str
    thumbnail_url: Optional[str] = None
    metadata: dict = Field(default_factory=dict, validation_alias="metadata_")
    folder: str
    tags: list[str]
    alt: str
    description: str
    created_at: datetime
    updated_at: datetime
