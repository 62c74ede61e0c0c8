from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from sitecms.schemas.base import CamelModel


class WebsiteUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    domain: Optional[str] = Field(None, max_length=255)
    settings: Optional[dict[str, Any]] = None


class WebsiteResponse(CamelModel):
    site_id: str
    name: str
    domain: Optional[str] = None
    settings: dict[str, Any]
    created_at: datetime
    updated_at: datetime
