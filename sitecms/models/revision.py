from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String

from sitecms.database import Base


class Revision(Base):
    """
    Append-only snapshot of a content item. The first one records the item
    as created; each later one holds the state it had before a change.
    """

    __tablename__ = "revisions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    site_id = Column(String(255), nullable=False)
    content_id = Column(String(255), nullable=False)
    content_type_id = Column(String(255), nullable=False)
    version = Column(Integer, nullable=False)
    title = Column(String(500), nullable=False)
    slug = Column(String(500), nullable=True)
    status = Column(String(20), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    changed_fields = Column(JSON, nullable=False, default=list)
    changed_by = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_revisions_site_content", "site_id", "content_id"),
    )

    def __repr__(self) -> str:
        return f"<Revision(content_id={self.content_id}, version={self.version})>"
