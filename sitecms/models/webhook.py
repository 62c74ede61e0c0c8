"""
Outgoing webhooks. A site subscribes URLs to CMS events; every attempt
to reach one is kept in ``webhook_deliveries``.
"""

import enum
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from sitecms.database import Base


class WebhookEvent(str, enum.Enum):
    CONTENT_CREATED = "content.created"
    CONTENT_UPDATED = "content.updated"
    CONTENT_PUBLISHED = "content.published"
    CONTENT_ARCHIVED = "content.archived"
    CONTENT_DELETED = "content.deleted"

    FORM_SUBMITTED = "form.submitted"
    FORM_STATUS_UPDATED = "form.status_updated"
    FORM_DELETED = "form.deleted"
    FORM_BULK_STATUS_UPDATED = "form.bulk_status_updated"

    MEDIA_UPLOADED = "media.uploaded"
    MEDIA_DELETED = "media.deleted"

    ALL = "*"


class WebhookStatus(str, enum.Enum):
    ACTIVE = "active"
    FAILED = "failed"
    DISABLED = "disabled"


class Webhook(Base):
    """
    A site's subscription of one endpoint to a set of events.

    Payloads are signed with ``secret``. ``consecutive_failures`` resets on
    the first successful delivery; reaching the failure threshold flips
    ``status`` to FAILED, which a later success clears again.
    """

    __tablename__ = "webhooks"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    site_id = Column(String(255), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    url = Column(String(2048), nullable=False)
    secret = Column(String(64), nullable=False)
    events = Column(JSON, nullable=False, default=list)
    status = Column(Enum(WebhookStatus), default=WebhookStatus.ACTIVE, nullable=False)
    max_retries = Column(Integer, default=3, nullable=False)

    delivery_count = Column(Integer, default=0, nullable=False)
    success_count = Column(Integer, default=0, nullable=False)
    consecutive_failures = Column(Integer, default=0, nullable=False)
    last_delivery_at = Column(DateTime, nullable=True)
    last_error = Column(Text, nullable=True)
    last_error_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    deliveries = relationship("WebhookDelivery", back_populates="webhook", cascade="all, delete-orphan")

    __table_args__ = (Index("ix_webhooks_site_status", "site_id", "status"),)

    def __repr__(self) -> str:
        return f"<Webhook(id={self.id}, site_id={self.site_id}, status={self.status})>"

    def listens_to(self, event: str) -> bool:
        subscribed = set(self.events or [])
        return WebhookEvent.ALL.value in subscribed or event in subscribed


class WebhookDelivery(Base):
    __tablename__ = "webhook_deliveries"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    webhook_id = Column(Integer, ForeignKey("webhooks.id", ondelete="CASCADE"), nullable=False, index=True)
    event = Column(String(50), nullable=False)
    attempt = Column(Integer, default=1, nullable=False)

    # Envelope sent to the endpoint
    payload = Column(JSON, nullable=False)

    success = Column(Boolean, default=False, nullable=False)
    status_code = Column(Integer, nullable=True)
    response_excerpt = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)
    duration_ms = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    webhook = relationship("Webhook", back_populates="deliveries")

    __table_args__ = (Index("ix_webhook_deliveries_webhook_created", "webhook_id", "created_at"),)
