from datetime import datetime
from typing import Optional

from pydantic import Field

from sitecms.models.content_type import FieldType
from sitecms.schemas.base import CamelModel

ID_PATTERN = r"^[a-z0-9][a-z0-9_-]*$"


class ContentTypeField(CamelModel):
    field_id: str = Field(..., min_length=1, max_length=100, pattern=r"^[A-Za-z][A-Za-z0-9_]*$")
    name: str = Field(..., min_length=1, max_length=255)
    type: FieldType
    required: bool = False
    min_length: Optional[int] = Field(None, ge=0)
    max_length: Optional[int] = Field(None, ge=0)
    pattern: Optional[str] = None
    options: Optional[list[str]] = None
    description: Optional[str] = None
    placeholder: Optional[str] = None

    def to_definition(self) -> dict:
        """Stored form of the field: camelCase keys, unset constraints omitted."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class ContentTypeCreate(CamelModel):
    content_type_id: str = Field(..., min_length=1, max_length=255, pattern=ID_PATTERN)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    fields: list[ContentTypeField] = Field(..., min_length=1)


class ContentTypeUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    fields: Optional[list[ContentTypeField]] = Field(None, min_length=1)


class ContentTypeResponse(CamelModel):
    site_id: str
    content_type_id: str
    name: str
    description: Optional[str] = None
    fields: list[dict]
    is_system: bool
    created_at: datetime
    updated_at: datetime
