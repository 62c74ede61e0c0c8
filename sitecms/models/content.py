import enum
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Enum, Index, Integer, String, UniqueConstraint

from sitecms.database import Base


class ContentStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Content(Base):
    """
    A document conforming to one content type.

    A published item may carry a pending draft (``draft_title`` /
    ``draft_data``) that stays invisible to the public until it is published.
    ``version`` increases on every stored change.
    """

    __tablename__ = "content"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    site_id = Column(String(255), nullable=False, index=True)
    content_type_id = Column(String(255), nullable=False)
    content_id = Column(String(255), nullable=False)
    slug = Column(String(500), nullable=False)
    title = Column(String(500), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    status = Column(
        Enum(ContentStatus, values_callable=_enum_values, native_enum=False, length=20),
        default=ContentStatus.DRAFT,
        nullable=False,
    )
    draft_title = Column(String(500), nullable=True)
    draft_data = Column(JSON, nullable=True)
    has_draft = Column(Boolean, default=False, nullable=False)
    version = Column(Integer, default=1, nullable=False)
    published_at = Column(DateTime, nullable=True)
    created_by = Column(String(255), nullable=True)
    updated_by = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("site_id", "content_id", name="uq_content_site_content_id"),
        UniqueConstraint("site_id", "slug", name="uq_content_site_slug"),
        Index("ix_content_site_type_status", "site_id", "content_type_id", "status"),
        Index("ix_content_created", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Content(content_id={self.content_id}, status={self.status})>"
