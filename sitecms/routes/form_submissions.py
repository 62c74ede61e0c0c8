"""
Form Submission Routes

Public contact form intake and lead management for site users.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.auth import Principal, require_site_user
from sitecms.config import settings
from sitecms.database import get_db
from sitecms.middleware.rate_limit import limiter
from sitecms.models.form_submission import SubmissionStatus
from sitecms.schemas.form_submission import (
    BulkStatusUpdate,
    ContactFormCreate,
    FormSubmissionResponse,
    SubmissionStatusUpdate,
)
from sitecms.services import form_submission_service
from sitecms.utils.pagination import PaginationParams
from sitecms.utils.responses import success_response

router = APIRouter(prefix="/api/cms/{site_id}/form-submissions", tags=["Form Submissions"])


def _serialize(submission) -> dict:
    return FormSubmissionResponse.model_validate(submission).to_api()


@router.post("", status_code=201)
@limiter.limit(settings.form_rate_limit)
async def submit_form(
    request: Request,
    site_id: str,
    body: ContactFormCreate,
    db: AsyncSession = Depends(get_db),
):
    submission = await form_submission_service.create_submission(db, site_id, body)
    return success_response(
        {"submissionId": submission.submission_id},
        message="Thank you! We will be in touch soon.",
        status_code=201,
    )


@router.get("")
async def list_submissions(
    site_id: str,
    status: Optional[SubmissionStatus] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    q: Optional[str] = Query(None, max_length=200, description="Alias for search"),
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_user),
):
    page = await form_submission_service.list_submissions(
        db, site_id, status=status, search=search or q, limit=pagination.limit, skip=pagination.skip
    )
    return success_response([_serialize(s) for s in page.items], pagination=page.meta())


@router.post("/bulk-update")
async def bulk_update_status(
    site_id: str,
    body: BulkStatusUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_user),
):
    result = await form_submission_service.bulk_update_status(db, site_id, body.submission_ids, body.status)
    return success_response(result, message=f"{result['updatedCount']} submission(s) updated")


@router.get("/{submission_id}")
async def get_submission(
    site_id: str,
    submission_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_user),
):
    submission = await form_submission_service.get_submission(db, site_id, submission_id)
    return success_response(_serialize(submission))


@router.put("/{submission_id}")
async def update_submission_status(
    site_id: str,
    submission_id: str,
    body: SubmissionStatusUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_user),
):
    submission = await form_submission_service.update_status(db, site_id, submission_id, body.status)
    return success_response(_serialize(submission), message="Status updated")


@router.delete("/{submission_id}")
async def delete_submission(
    site_id: str,
    submission_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_site_user),
):
    await form_submission_service.delete_submission(db, site_id, submission_id)
    return success_response(None, message="Submission deleted")
