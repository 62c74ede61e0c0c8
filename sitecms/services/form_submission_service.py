import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from sitecms.exceptions import SubmissionNotFoundError
from sitecms.models.form_submission import FormSubmission, SubmissionStatus
from sitecms.models.webhook import WebhookEvent
from sitecms.schemas.form_submission import ContactFormCreate
from sitecms.services import webhook_service
from sitecms.services.query_builder import build_tenant_query
from sitecms.utils.ids import generate_id
from sitecms.utils.pagination import Page, fetch_page
from sitecms.utils.sanitize import sanitize_email, sanitize_plain_text

logger = logging.getLogger(__name__)


async def create_submission(db: AsyncSession, site_id: str, form: ContactFormCreate) -> FormSubmission:
    """Store a lead from the public contact form. Free-text values are stripped of HTML."""
    first_name = sanitize_plain_text(form.first_name)
    last_name = sanitize_plain_text(form.last_name)
    data = {
        "firstName": first_name,
        "lastName": last_name,
        "email": sanitize_email(form.email),
        "phone": sanitize_plain_text(form.phone) or None,
        "projectType": sanitize_plain_text(form.project_type) or None,
        "projectSize": sanitize_plain_text(form.project_size) or None,
        "description": sanitize_plain_text(form.description) or None,
    }

    submission = FormSubmission(
        site_id=site_id,
        submission_id=generate_id("submission"),
        form_type=form.form_type,
        title=f"{first_name} {last_name}".strip(),
        data=data,
        status=SubmissionStatus.NEW,
    )
    db.add(submission)
    await db.commit()
    await db.refresh(submission)

    logger.info(f"Form submission {submission.submission_id} received for site {site_id}")
    await webhook_service.trigger_event(
        db,
        site_id,
        WebhookEvent.FORM_SUBMITTED,
        {"submissionId": submission.submission_id, "formType": submission.form_type, "title": submission.title},
    )
    return submission


async def list_submissions(
    db: AsyncSession,
    site_id: str,
    status: SubmissionStatus | None = None,
    search: str | None = None,
    limit: int | None = None,
    skip: int | None = None,
) -> Page:
    # title holds "first last"; the data blob covers email and the rest
    spec = build_tenant_query(
        site_id,
        equals={"status": status},
        search=search,
        search_fields=("title", "data"),
        limit=limit,
        skip=skip,
    )
    return await fetch_page(db, FormSubmission, spec)


async def get_submission(db: AsyncSession, site_id: str, submission_id: str) -> FormSubmission:
    result = await db.execute(
        select(FormSubmission).where(
            FormSubmission.site_id == site_id, FormSubmission.submission_id == submission_id
        )
    )
    submission = result.scalars().first()
    if submission is None:
        raise SubmissionNotFoundError(submission_id)
    return submission


async def update_status(
    db: AsyncSession, site_id: str, submission_id: str, status: SubmissionStatus
) -> FormSubmission:
    submission = await get_submission(db, site_id, submission_id)
    previous = SubmissionStatus(submission.status)
    if previous == status:
        return submission

    submission.status = status
    await db.commit()
    await db.refresh(submission)

    logger.info(f"Submission {submission_id} on site {site_id}: {previous.value} -> {status.value}")
    await webhook_service.trigger_event(
        db,
        site_id,
        WebhookEvent.FORM_STATUS_UPDATED,
        {"submissionId": submission_id, "previousStatus": previous.value, "status": status.value},
    )
    return submission


async def delete_submission(db: AsyncSession, site_id: str, submission_id: str) -> None:
    submission = await get_submission(db, site_id, submission_id)
    await db.delete(submission)
    await db.commit()

    logger.info(f"Submission {submission_id} deleted from site {site_id}")
    await webhook_service.trigger_event(
        db, site_id, WebhookEvent.FORM_DELETED, {"submissionId": submission_id}
    )


async def bulk_update_status(
    db: AsyncSession, site_id: str, submission_ids: list[str], status: SubmissionStatus
) -> dict:
    """
    Set ``status`` on every listed submission of the site.

    Ids that do not belong to the site are reported back as not found
    rather than failing the whole batch.
    """
    requested = list(dict.fromkeys(submission_ids))
    result = await db.execute(
        select(FormSubmission.submission_id).where(
            FormSubmission.site_id == site_id, FormSubmission.submission_id.in_(requested)
        )
    )
    found = set(result.scalars().all())

    if found:
        await db.execute(
            update(FormSubmission)
            .where(FormSubmission.site_id == site_id, FormSubmission.submission_id.in_(found))
            .values(status=status)
            .execution_options(synchronize_session=False)
        )
        await db.commit()

    updated = [sid for sid in requested if sid in found]
    not_found = [sid for sid in requested if sid not in found]

    logger.info(f"Bulk status update on site {site_id}: {len(updated)} set to {status.value}")
    if updated:
        await webhook_service.trigger_event(
            db,
            site_id,
            WebhookEvent.FORM_BULK_STATUS_UPDATED,
            {"submissionIds": updated, "status": status.value},
        )
    return {"updatedCount": len(updated), "updated": updated, "notFound": not_found}
