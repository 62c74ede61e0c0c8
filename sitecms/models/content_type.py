import enum
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text, UniqueConstraint

from sitecms.database import Base


class FieldType(str, enum.Enum):
    TEXT = "text"
    RICHTEXT = "richtext"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    IMAGE = "image"
    FILE = "file"
    SELECT = "select"
    REFERENCE = "reference"
    JSON = "json"
    URL = "url"
    EMAIL = "email"
    TEXTAREA = "textarea"


class ContentType(Base):
    """
    Per-tenant schema definition.

    ``fields`` is an ordered list of field definitions, each a dict with
    ``fieldId``, ``name``, ``type``, ``required`` and the optional
    ``minLength``, ``maxLength``, ``pattern`` and ``options`` constraints.
    """

    __tablename__ = "content_types"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    site_id = Column(String(255), nullable=False, index=True)
    content_type_id = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    fields = Column(JSON, nullable=False, default=list)
    is_system = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("site_id", "content_type_id", name="uq_content_types_site_type"),
    )

    def __repr__(self) -> str:
        return f"<ContentType(site_id={self.site_id}, content_type_id={self.content_type_id})>"

    def field_ids(self) -> list[str]:
        return [f["fieldId"] for f in self.fields or []]
