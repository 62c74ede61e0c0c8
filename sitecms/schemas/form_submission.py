from datetime import datetime
from typing import Any, Optional

from pydantic import EmailStr, Field

from sitecms.models.form_submission import SubmissionStatus
from sitecms.schemas.base import CamelModel


class ContactFormCreate(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    project_type: Optional[str] = Field(None, max_length=100)
    project_size: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=5000)
    form_type: str = Field("contact", min_length=1, max_length=100)


class SubmissionStatusUpdate(CamelModel):
    status: SubmissionStatus


class BulkStatusUpdate(CamelModel):
    submission_ids: list[str] = Field(..., min_length=1, max_length=500)
    status: SubmissionStatus


class FormSubmissionResponse(CamelModel):
    submission_id: str
    form_type: str
    title: str
    data: dict[str, Any]
    status: SubmissionStatus
    created_at: datetime
    updated_at: datetime
