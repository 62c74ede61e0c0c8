from datetime import datetime
from typing import Optional

from pydantic import Field, HttpUrl

from sitecms.models.webhook import WebhookStatus
from sitecms.schemas.base import CamelModel


class WebhookCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    url: HttpUrl
    events: list[str] = Field(..., min_length=1)
    max_retries: int = Field(3, ge=1, le=5)


class WebhookResponse(CamelModel):
    id: int
    name: str
    url: str
    events: list[str]
    status: WebhookStatus
    max_retries: int
    delivery_count: int
    success_count: int
    consecutive_failures: int
    last_delivery_at: Optional[datetime] = None
    last_error: Optional[str] = None
    created_at: datetime


class WebhookCreatedResponse(WebhookResponse):
    # Only returned once, at creation
    secret: str


class WebhookDeliveryResponse(CamelModel):
    id: int
    event: str
    status_code: Optional[int] = None
    success: bool
    error_message: Optional[str] = None
    duration_ms: Optional[int] = None
    attempt: int
    created_at: datetime
