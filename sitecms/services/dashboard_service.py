"""Admin dashboard summary for one site."""

from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.models.content import Content, ContentStatus
from sitecms.models.content_type import ContentType
from sitecms.models.form_submission import FormSubmission, SubmissionStatus
from sitecms.models.media import Media


async def get_site_summary(db: AsyncSession, site_id: str, period_days: int = 30) -> dict:
    """Counts shown on the dashboard, using conditional aggregation per table."""
    period_start = datetime.utcnow() - timedelta(days=period_days)

    content_row = (
        await db.execute(
            select(
                func.count(Content.id).label("total"),
                func.count(Content.id).filter(Content.status == ContentStatus.DRAFT).label("draft"),
                func.count(Content.id).filter(Content.status == ContentStatus.PUBLISHED).label("published"),
                func.count(Content.id).filter(Content.status == ContentStatus.ARCHIVED).label("archived"),
                func.count(Content.id).filter(Content.has_draft.is_(True)).label("pending_drafts"),
            ).where(Content.site_id == site_id)
        )
    ).one()

    by_type_result = await db.execute(
        select(Content.content_type_id, func.count(Content.id))
        .where(Content.site_id == site_id)
        .group_by(Content.content_type_id)
    )
    content_by_type = {row[0]: row[1] for row in by_type_result.fetchall()}

    content_types = (
        await db.execute(select(func.count(ContentType.id)).where(ContentType.site_id == site_id))
    ).scalar() or 0

    media_count = (await db.execute(select(func.count(Media.id)).where(Media.site_id == site_id))).scalar() or 0

    leads_row = (
        await db.execute(
            select(
                func.count(FormSubmission.id).label("total"),
                func.count(FormSubmission.id).filter(FormSubmission.status == SubmissionStatus.NEW).label("new"),
                func.count(FormSubmission.id)
                .filter(FormSubmission.created_at >= period_start)
                .label("this_period"),
            ).where(FormSubmission.site_id == site_id)
        )
    ).one()

    return {
        "content": {
            "total": content_row.total or 0,
            "draft": content_row.draft or 0,
            "published": content_row.published or 0,
            "archived": content_row.archived or 0,
            "pendingDrafts": content_row.pending_drafts or 0,
            "byType": content_by_type,
        },
        "contentTypes": content_types,
        "media": media_count,
        "submissions": {
            "total": leads_row.total or 0,
            "new": leads_row.new or 0,
            "thisPeriod": leads_row.this_period or 0,
        },
        "periodDays": period_days,
    }
