import enum
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Enum, Index, Integer, String, UniqueConstraint

from sitecms.database import Base


class SubmissionStatus(str, enum.Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    CONVERTED = "converted"
    LOST = "lost"


class FormSubmission(Base):
    """A lead captured by a public form."""

    __tablename__ = "form_submissions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    site_id = Column(String(255), nullable=False, index=True)
    submission_id = Column(String(255), nullable=False)
    form_type = Column(String(255), nullable=False, default="contact")
    title = Column(String(500), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    status = Column(
        Enum(SubmissionStatus, values_callable=lambda e: [m.value for m in e], native_enum=False, length=20),
        default=SubmissionStatus.NEW,
        nullable=False,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("site_id", "submission_id", name="uq_form_submissions_site_submission"),
        Index("ix_form_submissions_site_status", "site_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<FormSubmission(submission_id={self.submission_id}, status={self.status})>"
