from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String

from sitecms.database import Base


class Website(Base):
    """One row per tenant; ``settings`` holds site-wide options such as site-content defaults."""

    __tablename__ = "websites"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    site_id = Column(String(255), unique=True, nullable=False, index=True)
    domain = Column(String(255), nullable=True)
    name = Column(String(255), nullable=False)
    settings = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Website(site_id={self.site_id}, name={self.name})>"
