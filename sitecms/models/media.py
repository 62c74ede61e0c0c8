import enum
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Enum, Index, Integer, String, Text, UniqueConstraint

from sitecms.database import Base


class MediaType(str, enum.Enum):
    IMAGE = "image"
    VIDEO = "video"


class Media(Base):
    """
    Registered media asset.

    Binary storage lives outside the CMS; a record only points at ``url``.
    """

    __tablename__ = "media"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    site_id = Column(String(255), nullable=False, index=True)
    media_id = Column(String(255), nullable=False)
    name = Column(String(500), nullable=False)
    original_name = Column(String(500), nullable=False)
    type = Column(
        Enum(MediaType, values_callable=lambda e: [m.value for m in e], native_enum=False, length=20),
        nullable=False,
    )
    mime_type = Column(String(255), nullable=False)
    size = Column(Integer, nullable=False, default=0)
    url = Column(Text, nullable=False)
    thumbnail_url = Column(Text, nullable=True)
    # width, height, duration, aspectRatio
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    folder = Column(String(255), nullable=False, default="root")
    tags = Column(JSON, nullable=False, default=list)
    alt = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    uploaded_by = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("site_id", "media_id", name="uq_media_site_media_id"),
        Index("ix_media_site_type", "site_id", "type"),
        Index("ix_media_site_folder", "site_id", "folder"),
    )

    def __repr__(self) -> str:
        return f"<Media(media_id={self.media_id}, name={self.name})>"
